"""Shared fixtures for termtheme tests."""

import logging
from pathlib import Path

import pytest

import termtheme.config as config_module

ENV_VARS = (
    "TERMTHEME_CONFIG_ROOT",
    "TERMTHEME_CONFIG_FILE",
    "TERMTHEME_THEMES_DIR",
    "TERMTHEME_PICKER",
    "TERMTHEME_BACKUP",
    "TERMTHEME_VERBOSE",
    "XDG_CONFIG_HOME",
)

SAMPLE_TOML = """\
# Alacritty configuration
[general]
live_config_reload = true

[font]
size = 11.0
normal = { family = "Mono", style = "Regular" }

[window]
opacity = 0.95  # slightly transparent
"""

SAMPLE_YAML = """\
# Alacritty configuration (legacy YAML)
font:
  size: 11.0
  normal:
    family: Mono

window:
  opacity: 0.95  # slightly transparent
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real home directory and environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ENV_VARS:
        # setenv first so that values loaded from a .env file are undone too.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setattr(config_module, "CONFIG_DIR", home / ".termtheme")
    monkeypatch.setattr(config_module, "CONFIG_FILE", home / ".termtheme" / "config.yml")
    return home


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logger() so records propagate to caplog in later tests."""
    yield
    logger = logging.getLogger("termtheme")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def config_root(tmp_path) -> Path:
    root = tmp_path / "alacritty"
    root.mkdir()
    return root


@pytest.fixture
def themes_dir(config_root) -> Path:
    """Themes directory with dracula.toml and solarized.toml."""
    path = config_root / "themes"
    path.mkdir()
    (path / "dracula.toml").write_text('[colors.primary]\nbackground = "#282a36"\n')
    (path / "solarized.toml").write_text('[colors.primary]\nbackground = "#002b36"\n')
    return path


@pytest.fixture
def toml_config(config_root) -> Path:
    path = config_root / "alacritty.toml"
    path.write_text(SAMPLE_TOML)
    return path


@pytest.fixture
def yaml_config(config_root) -> Path:
    path = config_root / "alacritty.yml"
    path.write_text(SAMPLE_YAML)
    return path

