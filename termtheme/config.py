"""
Configuration: where the emulator config and the themes live.

Loading priority:
  1. Command-line options (applied by the CLI)
  2. TERMTHEME_* environment variables (``~/.termtheme/.env`` is loaded first)
  3. Settings file ~/.termtheme/config.yml
  4. Defaults derived from $XDG_CONFIG_HOME/alacritty
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import load_dotenv

from .atomic import atomic_write_text
from .errors import ConfigUnwritableError

CONFIG_DIR = Path.home() / ".termtheme"
CONFIG_FILE = CONFIG_DIR / "config.yml"

EMULATOR_DIR_NAME = "alacritty"
CONFIG_FILE_CANDIDATES = (
    "alacritty.toml",
    "alacritty.yml",
    "alacritty.yaml",
    "config.toml",
    "config.yml",
    "config.yaml",
)
THEMES_DIR_NAME = "themes"


# ── Configuration metadata and validation ──


@dataclass
class ConfigFieldSpec:
    """Configuration field specification with validation rules."""
    key: str
    field_name: str
    description: str
    value_type: str  # "str", "bool", "path"
    default: Any
    validator: Optional[Callable[[Any], tuple[bool, Any, str]]] = None  # (valid, coerced_value, error_msg)


def _validate_bool(value: Any) -> tuple[bool, bool, str]:
    """Validate boolean value."""
    if isinstance(value, bool):
        return True, value, ""
    if isinstance(value, str):
        val_lower = value.strip().lower()
        if val_lower in ("1", "true", "yes", "on"):
            return True, True, ""
        if val_lower in ("0", "false", "no", "off"):
            return True, False, ""
    return False, False, "Must be true/false, yes/no, on/off, or 1/0"


def _validate_path(value: Any) -> tuple[bool, str, str]:
    """Validate an optional filesystem path (empty means automatic)."""
    if value is None:
        return True, "", ""
    if not isinstance(value, (str, Path)):
        return False, "", "Must be a path"
    text = str(value).strip()
    if "\x00" in text:
        return False, "", "Path contains a NUL byte"
    return True, text, ""


def _validate_picker(value: Any) -> tuple[bool, str, str]:
    """Validate picker: 'builtin' or a command line such as 'fzf --reverse'."""
    text = str(value or "").strip()
    if not text:
        return False, "", "Must be 'builtin' or a command"
    if text.lower() == "builtin":
        return True, "builtin", ""
    try:
        parts = shlex.split(text)
    except ValueError as exc:
        return False, "", f"Cannot parse command: {exc}"
    if not parts:
        return False, "", "Must be 'builtin' or a command"
    return True, text, ""


CONFIG_FIELDS: Dict[str, ConfigFieldSpec] = {
    "config-root": ConfigFieldSpec(
        key="config-root",
        field_name="config_root",
        description="Emulator config directory (empty: $XDG_CONFIG_HOME/alacritty)",
        value_type="path",
        default="",
        validator=_validate_path,
    ),
    "config-file": ConfigFieldSpec(
        key="config-file",
        field_name="config_file",
        description="Emulator config file (empty: first alacritty.toml/.yml found in the root)",
        value_type="path",
        default="",
        validator=_validate_path,
    ),
    "themes-dir": ConfigFieldSpec(
        key="themes-dir",
        field_name="themes_dir",
        description="Directory holding theme files (empty: <config-root>/themes)",
        value_type="path",
        default="",
        validator=_validate_path,
    ),
    "backup": ConfigFieldSpec(
        key="backup",
        field_name="backup",
        description="Copy the config to <name>-backup.<ext> before the first switch",
        value_type="bool",
        default=False,
        validator=_validate_bool,
    ),
    "picker": ConfigFieldSpec(
        key="picker",
        field_name="picker",
        description="Interactive picker: builtin, or a command such as fzf",
        value_type="str",
        default="builtin",
        validator=_validate_picker,
    ),
    "verbose": ConfigFieldSpec(
        key="verbose",
        field_name="verbose",
        description="Enable verbose output",
        value_type="bool",
        default=False,
        validator=_validate_bool,
    ),
    "log-file": ConfigFieldSpec(
        key="log-file",
        field_name="log_file",
        description="Write a log file here (empty: no log file)",
        value_type="path",
        default="",
        validator=_validate_path,
    ),
}


def validate_config_value(key: str, value: Any) -> tuple[bool, Any, str]:
    """
    Validate a configuration value.

    Returns:
        (is_valid, coerced_value, error_message)
    """
    if key not in CONFIG_FIELDS:
        return False, value, f"Unknown configuration key: {key}"

    spec = CONFIG_FIELDS[key]
    if spec.validator:
        return spec.validator(value)
    return True, str(value), ""


def default_config_root() -> Path:
    """$XDG_CONFIG_HOME/alacritty, falling back to ~/.config/alacritty."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / EMULATOR_DIR_NAME


def find_config_file(root: Path) -> Path:
    """Return the first existing config file in ``root``.

    When none exists the preferred name is returned anyway, so that the caller
    reports it as missing.
    """
    for name in CONFIG_FILE_CANDIDATES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return root / CONFIG_FILE_CANDIDATES[0]


@dataclass
class Config:
    config_root: str = ""
    config_file: str = ""
    themes_dir: str = ""
    backup: bool = False
    picker: str = "builtin"
    verbose: bool = False
    log_file: str = ""
    _config_source: str = field(default="", repr=False)

    @classmethod
    def load(cls, settings_file: Optional[Path] = None) -> "Config":
        config = cls()

        env_path = CONFIG_DIR / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)

        source = Path(settings_file) if settings_file else CONFIG_FILE
        if source.exists():
            config._load_yaml(source)
        config._config_source = str(source)
        config._apply_env()
        return config

    def _load_yaml(self, filepath: Path):
        try:
            with open(filepath, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return
        if not isinstance(data, dict):
            return

        for key, spec in CONFIG_FIELDS.items():
            if key not in data:
                continue
            valid, value, _ = validate_config_value(key, data[key])
            if valid:
                setattr(self, spec.field_name, value)

    def _apply_env(self):
        env_map = {
            "TERMTHEME_CONFIG_ROOT": "config-root",
            "TERMTHEME_CONFIG_FILE": "config-file",
            "TERMTHEME_THEMES_DIR": "themes-dir",
            "TERMTHEME_PICKER": "picker",
            "TERMTHEME_BACKUP": "backup",
            "TERMTHEME_VERBOSE": "verbose",
        }
        for env_var, key in env_map.items():
            val = os.environ.get(env_var)
            if val:
                valid, value, _ = validate_config_value(key, val)
                if valid:
                    setattr(self, CONFIG_FIELDS[key].field_name, value)

    # ── resolved paths ──

    def resolved_config_root(self) -> Path:
        if self.config_root:
            return Path(self.config_root).expanduser()
        return default_config_root()

    def resolved_config_file(self) -> Path:
        if self.config_file:
            return Path(self.config_file).expanduser()
        return find_config_file(self.resolved_config_root())

    def resolved_themes_dir(self) -> Path:
        if self.themes_dir:
            return Path(self.themes_dir).expanduser()
        return self.resolved_config_root() / THEMES_DIR_NAME

    # ── persistence ──

    def save(self, filepath: Optional[str] = None):
        target = Path(filepath) if filepath else (
            Path(self._config_source) if self._config_source else CONFIG_FILE
        )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigUnwritableError(target, exc) from exc

        data = {
            key: getattr(self, spec.field_name)
            for key, spec in CONFIG_FIELDS.items()
        }
        atomic_write_text(
            target,
            yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True),
        )
        self._config_source = str(target)

    def summary(self) -> dict:
        return {
            "Config file": str(self.resolved_config_file()),
            "Themes dir": str(self.resolved_themes_dir()),
            "Backup": "ON" if self.backup else "OFF",
            "Picker": self.picker,
            "Log file": self.log_file or "(off)",
            "Settings": self._config_source or "(defaults)",
        }

    def get_config_value(self, key: str) -> Any:
        """Get configuration value by key."""
        if key not in CONFIG_FIELDS:
            return None
        spec = CONFIG_FIELDS[key]
        return getattr(self, spec.field_name, spec.default)

    def set_config_value(self, key: str, value: Any) -> tuple[bool, str]:
        """
        Set configuration value with validation.

        Returns:
            (success, error_message)
        """
        is_valid, coerced_value, error_msg = validate_config_value(key, value)
        if not is_valid:
            return False, error_msg

        spec = CONFIG_FIELDS[key]
        setattr(self, spec.field_name, coerced_value)
        self.save()
        return True, ""

    def reset_config_value(self, key: str) -> tuple[bool, str]:
        """
        Reset configuration value to default.

        Returns:
            (success, error_message)
        """
        if key not in CONFIG_FIELDS:
            return False, f"Unknown configuration key: {key}"

        spec = CONFIG_FIELDS[key]
        setattr(self, spec.field_name, spec.default)
        self.save()
        return True, ""
