"""User settings: ~/.sourcetables/config.toml."""

from __future__ import annotations

import os
import stat
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

_CONFIG_FILE = Path.home() / ".sourcetables" / "config.toml"

DEFAULT_MAX_INPUT_BYTES = 10 * 1024 * 1024

_SEPARATORS = {"newline": "\n", "comma": ","}
_ENGINES = ("scan", "sqlglot")
_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


class SettingsError(ValueError):
    """Raised for unknown keys or invalid values."""


class ConfigFileError(SettingsError):
    """The config file exists but is not readable TOML."""


@dataclass(frozen=True)
class Settings:
    engine: str = "scan"
    dialect: str = "hive"
    separator: str = "newline"
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    log_enabled: bool = True
    log_retention_days: int = 30

    @property
    def joiner(self) -> str:
        return _SEPARATORS[self.separator]


def _choice(*choices: str) -> Callable[[str], str]:
    def parse(value: str) -> str:
        value = value.strip().lower()
        if value not in choices:
            raise SettingsError(f"expected one of {', '.join(choices)}, got '{value}'")
        return value

    return parse


def _positive_int(value: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as e:
        raise SettingsError(f"expected an integer, got '{value}'") from e
    if parsed <= 0:
        raise SettingsError(f"expected a positive integer, got {parsed}")
    return parsed


def _boolean(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise SettingsError(f"expected true or false, got '{value}'")


def _text(value: str) -> str:
    value = value.strip()
    if not value:
        raise SettingsError("value must not be empty")
    return value


# "section.key" → (Settings field, parser)
KEYS: dict[str, tuple[str, Callable[[str], object]]] = {
    "extract.engine": ("engine", _choice(*_ENGINES)),
    "extract.dialect": ("dialect", _text),
    "extract.separator": ("separator", _choice(*_SEPARATORS)),
    "extract.max_input_bytes": ("max_input_bytes", _positive_int),
    "log.enabled": ("log_enabled", _boolean),
    "log.retention_days": ("log_retention_days", _positive_int),
}


def _escape_toml_value(v: str) -> str:
    """Escape a string for safe inclusion in a TOML double-quoted value."""
    return v.replace("\\", "\\\\").replace('"', '\\"')


def _write_toml(data: dict[str, dict]) -> None:
    """Serialize settings dict to TOML and write with restricted permissions."""
    lines: list[str] = []
    for section, entry in data.items():
        lines.append(f"[{section}]")
        for k, v in entry.items():
            lines.append(f'{k} = "{_escape_toml_value(str(v))}"')
        lines.append("")

    _CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    _CONFIG_FILE.write_text("\n".join(lines))
    os.chmod(_CONFIG_FILE, stat.S_IRUSR | stat.S_IWUSR)  # 0600


def _load_file() -> dict:
    if not _CONFIG_FILE.exists():
        return {}
    try:
        return tomllib.loads(_CONFIG_FILE.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"{_CONFIG_FILE} is not valid TOML: {e}") from e


def _split_key(key: str) -> tuple[str, str]:
    if key not in KEYS:
        raise SettingsError(f"unknown setting '{key}'. Valid: {', '.join(KEYS)}")
    section, name = key.split(".", 1)
    return section, name


def config_path() -> Path:
    return _CONFIG_FILE


def list_settings() -> dict[str, str]:
    """Return the values stored in the config file as {"section.key": value}."""
    stored: dict[str, str] = {}
    for section, entry in _load_file().items():
        if not isinstance(entry, dict):
            continue
        for name, value in entry.items():
            stored[f"{section}.{name}"] = str(value)
    return stored


def load_settings() -> Settings:
    """Defaults overlaid with valid values from the config file.

    Anything wrong in the file, down to unreadable TOML, is ignored so a bad
    edit never breaks extraction; `set_setting` is where values get validated.
    """
    settings = Settings()
    try:
        stored = list_settings()
    except ConfigFileError:
        return settings
    for key, raw in stored.items():
        if key not in KEYS:
            continue
        field_name, parse = KEYS[key]
        try:
            value = parse(raw)
        except SettingsError:
            continue
        settings = replace(settings, **{field_name: value})
    return settings


def set_setting(key: str, value: str) -> Path:
    """Validate and save a setting. Returns the config file path."""
    section, name = _split_key(key)
    _, parse = KEYS[key]
    parse(value)

    data = _load_file()
    data.setdefault(section, {})[name] = value.strip()
    _write_toml(data)
    return _CONFIG_FILE


def unset_setting(key: str) -> bool:
    """Remove a stored setting. Returns True if removed, False if it was not set."""
    section, name = _split_key(key)
    data = _load_file()
    if name not in data.get(section, {}):
        return False
    del data[section][name]
    if not data[section]:
        del data[section]
    if not data:
        _CONFIG_FILE.unlink(missing_ok=True)
    else:
        _write_toml(data)
    return True
