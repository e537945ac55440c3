"""Structured error types for theme switching."""

from pathlib import Path
from typing import Optional


class ThemeSwitchError(Exception):
    """Base error for all theme switching operations."""

    kind = "ThemeSwitchError"
    exit_code = 1


class InvalidIdentifierError(ThemeSwitchError):
    """Raised for an empty theme name or one that escapes the themes directory."""

    kind = "InvalidIdentifier"
    exit_code = 3

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid theme name {identifier!r}: {reason}")


class ThemeNotFoundError(ThemeSwitchError):
    """Raised when no theme file matches the identifier."""

    kind = "NotFound"
    exit_code = 4

    def __init__(self, identifier: str, themes_dir: Path):
        self.identifier = identifier
        self.themes_dir = themes_dir
        if identifier:
            message = f"Theme '{identifier}' not found in {themes_dir}"
        else:
            message = f"Themes directory not found: {themes_dir}"
        super().__init__(message)


class ConfigMissingError(ThemeSwitchError):
    """Raised when the emulator configuration file does not exist."""

    kind = "ConfigMissing"
    exit_code = 5

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Config file not found: {path}")


class ConfigUnreadableError(ThemeSwitchError):
    """Raised when the emulator configuration cannot be read."""

    kind = "ConfigUnreadable"
    exit_code = 6

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot read config file {path}{detail}")


class MalformedConfigError(ThemeSwitchError):
    """Raised when the configuration cannot be edited safely. Nothing is written."""

    kind = "MalformedConfig"
    exit_code = 7

    def __init__(self, path: Optional[Path], reason: str):
        self.path = path
        self.reason = reason
        where = f" {path}" if path else ""
        super().__init__(f"Refusing to edit config{where}: {reason}")


class ConfigUnwritableError(ThemeSwitchError):
    """Raised when writing or renaming the new configuration fails."""

    kind = "ConfigUnwritable"
    exit_code = 8

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot write config file {path}{detail} (original left untouched)")


class PickerError(ThemeSwitchError):
    """Raised when the interactive picker cannot be started."""

    kind = "PickerFailed"
    exit_code = 9

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Picker '{command}' failed: {reason}")
