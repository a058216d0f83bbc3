"""Configuration loader for the hosts updater.

Reads settings from a JSON, TOML or YAML file (picked by suffix) and validates
the document against :data:`SETTINGS_SCHEMA`. When no path is given the file
is discovered in this order:

1. ``HOSTS_UPDATER_CONFIG`` environment variable
2. ``./config.{json,toml,yaml,yml}``
3. ``~/.config/hosts_updater/config.*``
4. ``/etc/hosts_updater/config.*``
"""

from __future__ import annotations

import json
import os
import platform
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

CONFIG_PATH_ENV_VAR = "HOSTS_UPDATER_CONFIG"
CONFIG_SUFFIXES = (".json", ".toml", ".yaml", ".yml")
SEARCH_DIRS = (
    Path("."),
    Path("~/.config/hosts_updater"),
    Path("/etc/hosts_updater"),
)

WINDOWS_HOSTS_FILE = Path(r"C:\Windows\System32\drivers\etc\hosts")
POSIX_HOSTS_FILE = Path("/etc/hosts")

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "required": ["hosts_sources"],
    "properties": {
        "update_interval_hours": {"type": "integer", "minimum": 1},
        "hosts_sources": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "string", "pattern": "^https?://\\S+$"},
        },
        "backup_before_update": {"type": "boolean"},
        "backup_path": {"type": "string", "minLength": 1},
        "retry_interval_minutes": {"type": "integer", "minimum": 1},
        "fetch_timeout_seconds": {"type": "number", "exclusiveMinimum": 0},
        "fetch_attempts": {"type": "integer", "minimum": 1},
        "require_all_sources": {"type": "boolean"},
        "hosts_file": {"type": "string", "minLength": 1},
    },
    # backup_before_update defaults to true, so backup_path is required
    # unless backups are explicitly switched off.
    "if": {
        "not": {
            "properties": {"backup_before_update": {"const": False}},
            "required": ["backup_before_update"],
        }
    },
    "then": {"required": ["backup_path"]},
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


def default_hosts_file() -> Path:
    """Return the system hosts file path for the running platform."""
    if platform.system().lower() == "windows":
        return WINDOWS_HOSTS_FILE
    return POSIX_HOSTS_FILE


@dataclass(frozen=True)
class Settings:
    """Validated configuration."""

    hosts_sources: tuple[str, ...]
    update_interval_hours: int = 2
    backup_before_update: bool = True
    backup_path: Path | None = None
    retry_interval_minutes: int = 10
    fetch_timeout_seconds: float = 30.0
    fetch_attempts: int = 1
    require_all_sources: bool = False
    hosts_file: Path | None = None

    def __post_init__(self) -> None:
        if not self.hosts_sources:
            raise ConfigError("hosts_sources must contain at least one URL")
        for url in self.hosts_sources:
            if any(char.isspace() for char in url):
                raise ConfigError(f"Source URL must not contain whitespace: {url!r}")
        if self.backup_before_update and self.backup_path is None:
            raise ConfigError("backup_path is required when backup_before_update is enabled")
        if self.retry_interval_seconds >= self.interval_seconds:
            raise ConfigError(
                "retry_interval_minutes must be shorter than update_interval_hours "
                f"({self.retry_interval_minutes} min >= {self.update_interval_hours} h)"
            )

    @property
    def interval_seconds(self) -> float:
        return self.update_interval_hours * 3600.0

    @property
    def retry_interval_seconds(self) -> float:
        return self.retry_interval_minutes * 60.0

    @property
    def resolved_hosts_file(self) -> Path:
        return self.hosts_file if self.hosts_file is not None else default_hosts_file()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from an already schema-validated mapping."""
        backup_path = data.get("backup_path")
        hosts_file = data.get("hosts_file")
        return cls(
            hosts_sources=tuple(data["hosts_sources"]),
            update_interval_hours=data.get("update_interval_hours", 2),
            backup_before_update=data.get("backup_before_update", True),
            backup_path=Path(backup_path).expanduser() if backup_path else None,
            retry_interval_minutes=data.get("retry_interval_minutes", 10),
            fetch_timeout_seconds=float(data.get("fetch_timeout_seconds", 30.0)),
            fetch_attempts=data.get("fetch_attempts", 1),
            require_all_sources=data.get("require_all_sources", False),
            hosts_file=Path(hosts_file).expanduser() if hosts_file else None,
        )

    def with_hosts_file(self, hosts_file: Path) -> Settings:
        return replace(self, hosts_file=hosts_file)


def _candidate_paths() -> list[Path]:
    candidates: list[Path] = []
    for directory in SEARCH_DIRS:
        base = directory.expanduser() / "config"
        candidates.extend(base.with_suffix(suffix) for suffix in CONFIG_SUFFIXES)
    return candidates


def _resolve_config_path(path: Path | str | None = None) -> Path:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. HOSTS_UPDATER_CONFIG environment variable
    3. First existing file among the search directories
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    for candidate in _candidate_paths():
        if candidate.is_file():
            return candidate

    searched = ", ".join(str(p) for p in _candidate_paths())
    raise ConfigError(f"No configuration file found (searched: {searched})")


def _parse(config_path: Path, content: str) -> Any:
    suffix = config_path.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(content)
        if suffix == ".toml":
            return tomllib.loads(content)
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file {config_path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in configuration file {config_path}: {exc}") from exc
    raise ConfigError(
        f"Unsupported configuration format '{suffix}' for {config_path} "
        f"(expected one of {', '.join(CONFIG_SUFFIXES)})"
    )


def _format_errors(errors: list[Any]) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def validate_document(data: Any) -> None:
    """Validate a parsed configuration document against the schema."""
    validator = Draft202012Validator(SETTINGS_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ConfigError("Configuration failed validation:\n" + _format_errors(errors))


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Optional path to the config file. If not provided, uses the
            HOSTS_UPDATER_CONFIG env var or the first file found in the
            search directories.

    Returns:
        A validated Settings object.

    Raises:
        ConfigError: If the file cannot be found, read, parsed or validated.
    """
    config_path = _resolve_config_path(path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    data = _parse(config_path, content)
    if data is None:
        data = {}
    validate_document(data)
    return Settings.from_dict(data)
