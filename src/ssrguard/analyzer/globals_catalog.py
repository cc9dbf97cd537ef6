"""Catalog of environment globals and the derived restricted-name set."""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "globals.json"


@dataclass(frozen=True)
class GlobalCatalog:
    """Global names of a browser-like and a server-like environment."""
    browser: frozenset[str]
    server: frozenset[str]

    @classmethod
    def from_file(cls, catalog_path: Path = DEFAULT_CATALOG_PATH) -> 'GlobalCatalog':
        """Load a catalog from a JSON file with 'browser' and 'node' name lists.

        Args:
            catalog_path: Path to the catalog JSON file

        Returns:
            GlobalCatalog instance

        Raises:
            ValueError: If either list is missing or not a list of strings
        """
        with open(catalog_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Catalog {catalog_path} must be a JSON object")

        return cls(
            browser=_name_set(data, 'browser', catalog_path),
            server=_name_set(data, 'node', catalog_path),
        )


def _name_set(data: dict, key: str, catalog_path: Path) -> frozenset[str]:
    names = data.get(key)
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValueError(f"Catalog {catalog_path}: '{key}' must be a list of strings")
    return frozenset(names)


def restricted_globals(catalog: GlobalCatalog, allowed_globals: Iterable[str] = ()) -> frozenset[str]:
    """Compute the names that exist only in the browser environment.

    RestrictedSet = browser - server - allowed_globals

    Args:
        catalog: Environment globals
        allowed_globals: Names the caller explicitly permits

    Returns:
        Immutable set of restricted global names
    """
    return catalog.browser - catalog.server - frozenset(allowed_globals)


# Singleton instance
_catalog = None


def get_catalog() -> GlobalCatalog:
    """Get or create the catalog shipped with the package.

    Returns:
        GlobalCatalog instance
    """
    global _catalog
    if _catalog is None:
        _catalog = GlobalCatalog.from_file()
    return _catalog
