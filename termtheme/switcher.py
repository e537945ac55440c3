"""Locate-then-apply in one call."""

from __future__ import annotations

from pathlib import Path

from .applier import ApplyResult, apply_theme, read_config
from .directive import format_for_path
from .errors import MalformedConfigError
from .locator import locate_theme


def switch_theme(identifier: str, themes_dir: Path, config_path: Path,
                 backup: bool = False) -> ApplyResult:
    """Make the config at ``config_path`` import the theme named ``identifier``.

    Theme files in the config's own format are preferred when several share
    the same name. Any failure is raised before the config is touched.
    """
    config_path = Path(config_path)
    themes_dir = Path(themes_dir)
    try:
        suffixes = format_for_path(config_path).suffixes
    except MalformedConfigError:
        # A missing or unreadable config is reported as such, not as a bad suffix.
        read_config(config_path)
        raise
    theme_path = locate_theme(identifier, themes_dir, preferred_suffixes=suffixes)
    return apply_theme(theme_path, config_path, themes_dir, backup=backup)
