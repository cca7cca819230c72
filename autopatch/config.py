"""
Configuration for AutoPatch.

Options are layered:
- Tool defaults
- Project settings (the "autopatch" key of the root package's extra data)
- AUTOPATCH_* environment variables (a .env file is honored)

The resolved configuration is frozen for the whole session.
"""

import os
import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from rich.console import Console

from autopatch.errors import ConfigurationError

# Load environment variables
load_dotenv()

console = Console()

# Key of the project-level settings inside the root package's extra data
CONFIG_KEY = "autopatch"

ENV_PREFIX = "AUTOPATCH_"

DEFAULT_PATCH_LEVELS = ("-p1", "-p0", "-p2", "-p4")

PATCH_TOOLS = ("patch", "git")

_PATCH_LEVEL_RE = re.compile(r"^-p\d+$")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class PatcherConfig:
    """
    Session settings.

    Field names are the option names with dashes replaced by underscores.
    """

    # Failure policy
    exit_on_patch_failure: bool = True

    # Pipeline switches
    disable_patching: bool = False
    disable_resolvers: tuple[str, ...] = ()

    # Application
    patch_levels: tuple[str, ...] = DEFAULT_PATCH_LEVELS
    patch_tool: str = "patch"
    http_timeout: int = 30

    # External manifest
    patches_file: Optional[str] = None

    def is_resolver_disabled(self, *identities: str) -> bool:
        return any(identity in self.disable_resolvers for identity in identities)


# Option name -> value type
OPTION_TYPES = {
    "exit-on-patch-failure": "bool",
    "disable-patching": "bool",
    "disable-resolvers": "list",
    "patch-levels": "list",
    "patch-tool": "string",
    "http-timeout": "int",
    "patches-file": "string",
}


def _env_name(option: str) -> str:
    return ENV_PREFIX + option.upper().replace("-", "_")


def _coerce_env(option: str, kind: str, raw: str) -> Any:
    """Convert an environment string to the option's type."""
    value = raw.strip()
    if kind == "bool":
        if value.lower() in _TRUE_VALUES:
            return True
        if value.lower() in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{_env_name(option)} must be a boolean, got '{raw}'")
    if kind == "list":
        return [item.strip() for item in value.split(",") if item.strip()]
    if kind == "int":
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{_env_name(option)} must be an integer, got '{raw}'")
    return value


def _check_type(option: str, kind: str, value: Any) -> Any:
    """Validate a project-level value against the option's type."""
    if kind == "bool" and isinstance(value, bool):
        return value
    if kind == "int" and isinstance(value, int) and not isinstance(value, bool):
        return value
    if kind == "string" and (value is None or isinstance(value, str)):
        return value
    if kind == "list" and isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return list(value)
    raise ConfigurationError(
        f"Option '{option}' must be of type {kind}, got {type(value).__name__}"
    )


def _validate(values: dict) -> None:
    levels = values["patch-levels"]
    if not levels:
        raise ConfigurationError("Option 'patch-levels' must not be empty")
    for level in levels:
        if not _PATCH_LEVEL_RE.match(level):
            raise ConfigurationError(f"Invalid patch level '{level}' (expected e.g. -p1)")

    if values["patch-tool"] not in PATCH_TOOLS:
        raise ConfigurationError(
            f"Unknown patch tool '{values['patch-tool']}' (expected one of: {', '.join(PATCH_TOOLS)})"
        )

    if values["http-timeout"] <= 0:
        raise ConfigurationError("Option 'http-timeout' must be positive")


def load_config(
    extra: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PatcherConfig:
    """
    Resolve the session configuration.

    Args:
        extra: Root package extra data; settings live under CONFIG_KEY
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Frozen PatcherConfig

    Raises:
        ConfigurationError: If a value has the wrong type or is invalid
    """
    if environ is None:
        environ = os.environ

    defaults = PatcherConfig()
    values = {
        field.name.replace("_", "-"): getattr(defaults, field.name)
        for field in fields(PatcherConfig)
    }

    project = (extra or {}).get(CONFIG_KEY) or {}
    if not isinstance(project, Mapping):
        raise ConfigurationError(f"'{CONFIG_KEY}' settings must be an object")

    for option, value in project.items():
        kind = OPTION_TYPES.get(option)
        if kind is None:
            console.print(f"[yellow]Ignoring unknown option '{option}'[/yellow]")
            continue
        values[option] = _check_type(option, kind, value)

    for option, kind in OPTION_TYPES.items():
        raw = environ.get(_env_name(option))
        if raw is not None:
            values[option] = _coerce_env(option, kind, raw)

    _validate(values)

    return PatcherConfig(
        exit_on_patch_failure=values["exit-on-patch-failure"],
        disable_patching=values["disable-patching"],
        disable_resolvers=tuple(values["disable-resolvers"]),
        patch_levels=tuple(values["patch-levels"]),
        patch_tool=values["patch-tool"],
        http_timeout=values["http-timeout"],
        patches_file=values["patches-file"] or None,
    )


# Default configuration instance
DEFAULT_CONFIG = PatcherConfig()
