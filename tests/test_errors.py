"""Tests for the error taxonomy."""

from pathlib import Path

import pytest

from termtheme.errors import (
    ConfigMissingError,
    ConfigUnreadableError,
    ConfigUnwritableError,
    InvalidIdentifierError,
    MalformedConfigError,
    PickerError,
    ThemeNotFoundError,
    ThemeSwitchError,
)

ALL_ERRORS = [
    InvalidIdentifierError("..", "path traversal is not allowed"),
    ThemeNotFoundError("nord", Path("/themes")),
    ConfigMissingError(Path("/c/alacritty.toml")),
    ConfigUnreadableError(Path("/c/alacritty.toml"), PermissionError("denied")),
    MalformedConfigError(Path("/c/alacritty.toml"), "invalid TOML"),
    ConfigUnwritableError(Path("/c/alacritty.toml"), OSError("disk full")),
    PickerError("fzf", "command not found: fzf"),
]


@pytest.mark.parametrize("error", ALL_ERRORS, ids=lambda e: e.kind)
def test_errors_share_base(error):
    assert isinstance(error, ThemeSwitchError)
    assert error.exit_code not in (0, 2)


def test_exit_codes_are_distinct():
    codes = [e.exit_code for e in ALL_ERRORS]
    assert len(set(codes)) == len(codes)


def test_messages():
    assert str(ThemeNotFoundError("nord", Path("/themes"))) == "Theme 'nord' not found in /themes"
    assert str(MalformedConfigError(None, "bad")) == "Refusing to edit config: bad"
    assert "denied" in str(ConfigUnreadableError(Path("/c"), PermissionError("denied")))
