import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from cnysa.config.logging_config import get_logger

log = get_logger(__name__)


@dataclass
class Setting:
    env_var: str
    option: str
    description: str
    enum: List[str] | None = None
    parse: Optional[Callable[[str], Any]] = None


_registry: List[Setting] = []


def register_setting(
    env_var: str,
    option: str,
    description: str,
    enum: List[str] | None = None,
    parse: Optional[Callable[[str], Any]] = None,
) -> List[Setting]:
    """Register an environment variable that overrides a rendering option.

    Parameters
    ----------
    env_var: str
        The environment variable name.
    option: str
        Name of the ``CnysaOptions`` field the variable feeds.
    description: str
        Human readable description of the setting.
    enum: List[str] | None
        List of possible values for the setting.
    parse: Callable[[str], Any] | None
        Converts the raw string; the raw string is used when omitted.

    Returns
    -------
    List[Setting]
        The list of all registered settings.
    """
    setting = Setting(
        env_var=env_var,
        option=option,
        description=description,
        enum=enum,
        parse=parse,
    )
    _registry.append(setting)
    return list(_registry)


def get_settings_registry() -> List[Setting]:
    """Return the list of all registered settings."""
    return list(_registry)


def read_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect option overrides from registered environment variables."""
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for setting in _registry:
        raw = environ.get(setting.env_var)
        if raw is None or raw == "":
            continue
        try:
            values[setting.option] = setting.parse(raw) if setting.parse else raw
        except ValueError:
            log.debug("Ignoring %s=%r: cannot parse", setting.env_var, raw)
    return values


def _parse_flag_off(raw: str) -> bool:
    return raw.strip().lower() not in {"1", "true", "yes", "on"}


register_setting(
    env_var="CNYSA_WIDTH",
    option="width",
    description="Print width of the rendered page (defaults to the terminal width)",
    parse=int,
)
register_setting(
    env_var="CNYSA_IGNORE_TYPES",
    option="ignore_types",
    description="Regular expression of resource types that are never recorded",
)
register_setting(
    env_var="CNYSA_INCLUDE_TYPES",
    option="include_types",
    description="Regular expression a resource type must match to be recorded",
)
register_setting(
    env_var="CNYSA_PADDING",
    option="padding",
    description="Number of idle columns inserted after every event",
    parse=int,
)
register_setting(
    env_var="CNYSA_FORMAT",
    option="format",
    description="Output format of snapshots and traces",
    enum=["default", "svg"],
)
register_setting(
    env_var="CNYSA_NO_COLOR",
    option="color",
    description="Set to 1 to render plain text without terminal styles",
    parse=_parse_flag_off,
)
