"""Rule options schema.

Options use the camelCase keys of the rule's JSON schema
(``allowedGlobals``, ``allowedHooks``, ``allowedFunctions``,
``conditionCheck``); snake_case names are accepted too. Unknown keys and
wrongly typed values are rejected before any analysis runs.

Note: ``allowedFunctions`` is documented with two defaults
(``setTimeout``, ``setInterval``) but applied with three; the applied
default including ``requestAnimationFrame`` is kept here.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_ALLOWED_HOOKS = ("useEffect", "useLayoutEffect")
DEFAULT_ALLOWED_FUNCTIONS = ("setTimeout", "setInterval", "requestAnimationFrame")


class OptionsError(ValueError):
    """Raised when rule options fail schema validation."""


class RuleOptions(BaseModel):
    """Validated, immutable options for one analysis run."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    allowed_globals: Annotated[
        tuple[StrictStr, ...],
        Field(default=(), description="Browser globals that may be used anywhere"),
    ]
    allowed_hooks: Annotated[
        tuple[StrictStr, ...],
        Field(
            default=DEFAULT_ALLOWED_HOOKS,
            description="Hooks whose callbacks only run on the client",
        ),
    ]
    allowed_functions: Annotated[
        tuple[StrictStr, ...],
        Field(
            default=DEFAULT_ALLOWED_FUNCTIONS,
            description="Functions whose callbacks run deferred on the client",
        ),
    ]
    condition_check: Annotated[
        StrictBool,
        Field(default=True, description="Accept uses guarded by `if (window !== undefined)`"),
    ]

    @field_validator("allowed_globals", "allowed_hooks", "allowed_functions")
    @classmethod
    def _dedupe(cls, names: tuple[str, ...]) -> tuple[str, ...]:
        # Ordered sets: keep the first occurrence
        return tuple(dict.fromkeys(names))

    def merged(self, **overrides: Any) -> RuleOptions:
        """Return a new validated instance with the given fields replaced.

        ``None`` values are ignored so callers can pass unset CLI flags as-is.

        Raises:
            OptionsError: If the merged options are invalid
        """
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return parse_options(data)


def parse_options(data: Any) -> RuleOptions:
    """Validate a raw options mapping.

    Args:
        data: Mapping as found in a rule configuration (or None for defaults)

    Returns:
        RuleOptions instance

    Raises:
        OptionsError: If data is not an object or does not match the schema
    """
    if data is None:
        return RuleOptions()
    if not isinstance(data, dict):
        raise OptionsError(f"Rule options must be an object, got {type(data).__name__}")
    try:
        return RuleOptions.model_validate(data)
    except ValidationError as e:
        raise OptionsError(str(e)) from e


def load_options(options_path: str | Path) -> RuleOptions:
    """Load and validate rule options from a JSON file.

    Raises:
        OptionsError: If the file is unreadable, not JSON, or invalid
    """
    options_path = Path(options_path)
    try:
        data = json.loads(options_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise OptionsError(f"Cannot read options file {options_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise OptionsError(f"Invalid JSON in options file {options_path}: {e}") from e
    return parse_options(data)
