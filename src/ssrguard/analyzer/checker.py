"""The no-ssr-browser-globals rule: per-file driver and findings."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

import tree_sitter

from .context import AnalysisContext, ContextAnalyzer
from .globals_catalog import GlobalCatalog, get_catalog, restricted_globals
from .options import RuleOptions
from .parser import LanguageParser, is_markup_file
from .references import iter_references
from .scope import ScopeResolver, node_text


RULE_NAME = "no-ssr-browser-globals"

RULE_META = {
    "type": "problem",
    "docs": {
        "description": "Disallow browser-specific globals (e.g., `window`, `document`) in SSR contexts.",
        "category": "Possible Errors",
        "recommended": True,
    },
}

RECOMMENDED_CONFIG = {"rules": {RULE_NAME: "error"}}

MESSAGE_TEMPLATE = (
    "'{name}' is not allowed in a server-side context. Wrap it in a client-side safe context, "
    "such as useEffect or an event handler, or mark it with @client annotation.\n"
    "---------------------------\n"
    "// @client\n"
    "const value = location.host;\n"
    "-----------\n"
)


@dataclass(frozen=True)
class Finding:
    """One unsafe use of a browser-only global."""
    node: tree_sitter.Node = field(compare=False, repr=False)
    name: str
    file_path: str
    line: int
    column: int

    @property
    def message(self) -> str:
        return MESSAGE_TEMPLATE.format(name=self.name)

    def to_dict(self) -> dict:
        return {
            'file': self.file_path,
            'line': self.line,
            'column': self.column,
            'name': self.name,
            'message': self.message,
        }


class SSRGlobalsChecker:
    """Reports browser-only globals used outside client-safe contexts.

    The restricted-name set is computed once per checker from the catalog
    and options; checking a file never mutates the checker or the tree.
    """

    def __init__(self, options: Optional[RuleOptions] = None, catalog: Optional[GlobalCatalog] = None):
        """Initialize the checker.

        Args:
            options: Validated rule options (defaults applied when None)
            catalog: Environment globals (the bundled catalog when None)
        """
        self.options = options if options is not None else RuleOptions()
        self.catalog = catalog if catalog is not None else get_catalog()
        self.context = AnalysisContext(
            restricted=restricted_globals(self.catalog, self.options.allowed_globals),
            options=self.options,
        )
        self.scopes = ScopeResolver()
        self.analyzer = ContextAnalyzer()

    @property
    def restricted(self) -> frozenset[str]:
        return self.context.restricted

    def check_source(self, source_code: str | bytes, file_path: str | Path) -> List[Finding]:
        """Check in-memory source code.

        Files that are not .jsx/.tsx yield no findings and are not parsed.

        Raises:
            UnparsableSourceError: If the source has syntax errors
        """
        if not is_markup_file(file_path):
            return []

        parser = LanguageParser.from_file_extension(file_path)
        tree = parser.parse_source(source_code, str(file_path))
        return list(self.iter_findings(tree, str(file_path)))

    def check_file(self, file_path: str | Path) -> List[Finding]:
        """Check a file on disk.

        Files that are not .jsx/.tsx yield no findings and are never read.

        Raises:
            OSError: If the file cannot be read
            UnparsableSourceError: If the file has syntax errors
        """
        if not is_markup_file(file_path):
            return []

        parser = LanguageParser.from_file_extension(file_path)
        tree = parser.parse_file(file_path)
        return list(self.iter_findings(tree, str(file_path)))

    def iter_findings(self, tree: tree_sitter.Tree, file_path: str = "<input>") -> Iterator[Finding]:
        """Yield findings for an already parsed tree in document order."""
        restricted = self.context.restricted

        for reference in iter_references(tree.root_node):
            name = node_text(reference)
            if name not in restricted:
                continue
            if self.scopes.is_shadowed(reference, name):
                continue
            if self.analyzer.is_safe(reference, self.context):
                continue

            row, column = reference.start_point
            yield Finding(
                node=reference,
                name=name,
                file_path=file_path,
                line=row + 1,
                column=column + 1,
            )
