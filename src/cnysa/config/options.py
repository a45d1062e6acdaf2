"""
Rendering and recording options.

Options arrive from several places (config files, environment variables,
constructor arguments, per-call overrides). They all funnel through
:func:`canonicalize_options`, which validates once and compiles every type
pattern so a malformed filter fails at construction time instead of silently
matching nothing.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Any, FrozenSet, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel, to_snake

from cnysa.config.configuration import read_environment
from cnysa.config.logging_config import get_logger
from cnysa.config.settings import load_settings
from cnysa.errors import InvalidOptionsError

log = get_logger(__name__)

DEFAULT_COLORS = ["on magenta", "on yellow", "on cyan"]


def _terminal_width() -> int:
    return shutil.get_terminal_size((80, 24)).columns or 80


def _compile_pattern(value: Any) -> Optional[re.Pattern]:
    if value is None or isinstance(value, re.Pattern):
        return value
    if isinstance(value, str):
        try:
            return re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid type pattern {value!r}: {e}") from e
    raise ValueError(f"expected a regular expression, got {type(value).__name__}")


class CnysaOptions(BaseModel):
    """Canonical options shared by the recorder and the renderers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    width: int = Field(default_factory=_terminal_width, ge=1, description="Print width of the page")
    ignore_types: Optional[re.Pattern] = Field(None, description="Types that are never recorded")
    include_types: Optional[re.Pattern] = Field(None, description="Types a resource must match to be recorded")
    highlight_types: Optional[re.Pattern] = Field(None, description="Types that start a highlight color")
    colors: List[str] = Field(default_factory=lambda: list(DEFAULT_COLORS), description="Highlight color cycle")
    roots: Optional[Union[FrozenSet[int], re.Pattern]] = Field(
        None, description="Ancestry constraint: resource ids or a type pattern"
    )
    padding: int = Field(1, ge=0, description="Idle columns inserted after each event")
    format: Literal["default", "svg"] = Field("default", description="Output format")
    color: bool = Field(True, description="Emit terminal styles in default output")
    capture_stacks: bool = Field(False, description="Capture call stacks for ancestry traces")
    live: bool = Field(False, description="Print every lifecycle notification as it happens")

    @field_validator("ignore_types", "include_types", "highlight_types", mode="before")
    @classmethod
    def compile_type_pattern(cls, v: Any) -> Optional[re.Pattern]:
        """Compile string patterns, rejecting malformed ones."""
        return _compile_pattern(v)

    @field_validator("roots", mode="before")
    @classmethod
    def normalize_roots(cls, v: Any) -> Any:
        """Accept a pattern string, a single id, or an iterable of ids."""
        if v is None or isinstance(v, re.Pattern):
            return v
        if isinstance(v, str):
            return _compile_pattern(v)
        if isinstance(v, bool):
            raise ValueError("roots must be ids or a type pattern")
        if isinstance(v, int):
            return frozenset({v})
        if isinstance(v, (list, tuple, set, frozenset)):
            if not v:
                return None
            return frozenset(int(i) for i in v)
        return v

    @field_validator("colors")
    @classmethod
    def require_colors(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("colors must contain at least one style")
        return v


def canonicalize_options(
    options: Optional[Union[CnysaOptions, Mapping[str, Any]]] = None,
    **overrides: Any,
) -> CnysaOptions:
    """Merge ``options`` with keyword ``overrides`` into validated options.

    Raises:
        InvalidOptionsError: If any value is malformed, e.g. a type pattern
            that is not a valid regular expression.
    """
    if isinstance(options, CnysaOptions):
        if not overrides:
            return options
        data: dict[str, Any] = options.model_dump()
    else:
        data = {to_snake(k): v for k, v in (options or {}).items()}

    data.update({to_snake(k): v for k, v in overrides.items() if v is not None})

    try:
        return CnysaOptions.model_validate(data)
    except ValidationError as e:
        raise InvalidOptionsError(f"Invalid cnysa options: {e}", errors=e.errors()) from e


def load_default_options(
    cwd: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    include_user: bool = True,
) -> dict[str, Any]:
    """Return option values seeded from config files, then the environment.

    Never fails: unreadable files were already skipped by ``load_settings``.
    """
    values = {to_snake(k): v for k, v in load_settings(cwd, include_user=include_user).items()}
    values.update(read_environment(environ))
    log.debug("Default options: %s", values)
    return values
