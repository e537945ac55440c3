"""Apply a theme by rewriting the emulator config's import directive."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .atomic import atomic_write_text, real_target
from .directive import format_for_path, read_imports, set_theme_import
from .errors import (
    ConfigMissingError,
    ConfigUnreadableError,
    MalformedConfigError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of a successful apply."""
    config_path: Path
    theme_path: Path
    previous_theme: Optional[Path]
    changed: bool
    backup_path: Optional[Path] = None

    @property
    def theme_name(self) -> str:
        return self.theme_path.stem


def read_config(config_path: Path) -> str:
    """Read the emulator config, mapping OS errors onto the error taxonomy."""
    try:
        return config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigMissingError(config_path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigUnreadableError(config_path, exc) from exc


def entry_path(entry: str, config_dir: Path) -> str:
    """Absolute, normalized form of an import entry."""
    path = os.path.expanduser(entry)
    if not os.path.isabs(path):
        path = os.path.join(config_dir, path)
    return os.path.normpath(path)


def managed_matcher(themes_dir: Path, config_dir: Path) -> Callable[[str], bool]:
    """Return a predicate telling whether an import entry points into ``themes_dir``.

    Relative entries are taken relative to the config file's directory, the
    same way the emulator resolves them.
    """
    base = os.path.normpath(os.path.abspath(themes_dir))
    real_base = os.path.realpath(themes_dir)

    def _inside(path: str, root: str) -> bool:
        try:
            return os.path.commonpath([path, root]) == root and path != root
        except ValueError:
            return False

    def is_managed(entry: str) -> bool:
        path = entry_path(entry, config_dir)
        if _inside(path, base):
            return True
        return _inside(os.path.join(os.path.realpath(os.path.dirname(path)),
                                    os.path.basename(path)), real_base)

    return is_managed


def backup_path_for(config_path: Path) -> Path:
    """``alacritty.toml`` -> ``alacritty-backup.toml`` beside the original."""
    return config_path.with_name(f"{config_path.stem}-backup{config_path.suffix}")


def _backup_once(config_path: Path) -> Optional[Path]:
    """Keep a copy of the config as it was before the first switch."""
    backup = backup_path_for(config_path)
    if backup.exists():
        return None
    try:
        shutil.copy2(config_path, backup)
    except OSError as exc:
        logger.warning("Could not back up %s: %s", config_path, exc)
        return None
    logger.info("Backed up %s -> %s", config_path, backup)
    return backup


def apply_theme(theme_path: Path, config_path: Path, themes_dir: Path,
                backup: bool = False) -> ApplyResult:
    """Point the config's import directive at ``theme_path``.

    All other content of the config is preserved byte-for-byte and the file is
    replaced atomically. Nothing is written when the config cannot be parsed
    or the directive cannot be located unambiguously.
    """
    config_path = Path(config_path)
    text = read_config(config_path)
    fmt = format_for_path(config_path)

    is_managed = managed_matcher(themes_dir, real_target(config_path).parent)
    try:
        edit = set_theme_import(text, fmt, str(theme_path), is_managed)
    except MalformedConfigError as exc:
        raise MalformedConfigError(config_path, exc.reason) from exc

    previous = Path(edit.previous) if edit.previous else None
    if not edit.changed:
        logger.info("%s already imports %s", config_path, theme_path)
        return ApplyResult(config_path, Path(theme_path), previous, changed=False)

    backup_path = _backup_once(config_path) if backup else None
    atomic_write_text(config_path, edit.text)
    logger.info("Switched %s to theme %s", config_path, theme_path)
    return ApplyResult(config_path, Path(theme_path), previous, changed=True,
                       backup_path=backup_path)


def current_theme(config_path: Path, themes_dir: Path) -> Optional[Path]:
    """Return the theme file the config currently imports, if any."""
    config_path = Path(config_path)
    text = read_config(config_path)
    fmt = format_for_path(config_path)
    config_dir = real_target(config_path).parent
    is_managed = managed_matcher(themes_dir, config_dir)
    try:
        entries = read_imports(text, fmt)
    except MalformedConfigError as exc:
        raise MalformedConfigError(config_path, exc.reason) from exc
    for entry in entries:
        if is_managed(entry):
            return Path(entry_path(entry, config_dir))
    return None
