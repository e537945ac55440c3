"""Tests for theme lookup and listing."""

import logging

import pytest

from termtheme.errors import InvalidIdentifierError, ThemeNotFoundError
from termtheme.locator import ThemeEntry, list_themes, locate_theme, validate_identifier


class TestValidateIdentifier:

    def test_strips_whitespace(self):
        assert validate_identifier("  dracula \n") == "dracula"

    @pytest.mark.parametrize("identifier", ["", "   ", None])
    def test_empty_rejected(self, identifier):
        with pytest.raises(InvalidIdentifierError):
            validate_identifier(identifier)

    @pytest.mark.parametrize("identifier", [
        ".", "..", "../dracula", "../../etc/passwd", "sub/dracula", "..\\dracula",
        "/etc/passwd", "dra\x00cula", ".hidden",
    ])
    def test_unsafe_rejected(self, identifier):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_identifier(identifier)
        assert exc_info.value.exit_code == 3
        assert exc_info.value.kind == "InvalidIdentifier"


class TestLocateTheme:

    def test_finds_by_stem(self, themes_dir):
        path = locate_theme("dracula", themes_dir)
        assert path == themes_dir / "dracula.toml"
        assert path.is_absolute()

    def test_finds_by_full_filename(self, themes_dir):
        (themes_dir / "dracula.yml").write_text("colors: {}\n")
        assert locate_theme("dracula.yml", themes_dir) == themes_dir / "dracula.yml"

    def test_missing_theme(self, themes_dir):
        with pytest.raises(ThemeNotFoundError) as exc_info:
            locate_theme("nonexistent", themes_dir)
        assert exc_info.value.identifier == "nonexistent"
        assert "nonexistent" in str(exc_info.value)
        assert str(themes_dir) in str(exc_info.value)

    def test_missing_themes_dir(self, tmp_path):
        with pytest.raises(ThemeNotFoundError):
            locate_theme("dracula", tmp_path / "nowhere")

    def test_traversal_rejected_even_if_target_exists(self, themes_dir):
        (themes_dir.parent / "secret.toml").write_text("x = 1\n")
        with pytest.raises(InvalidIdentifierError):
            locate_theme("../secret", themes_dir)

    def test_symlink_leaving_themes_dir_rejected(self, tmp_path, themes_dir):
        outside = tmp_path / "outside.toml"
        outside.write_text("x = 1\n")
        (themes_dir / "leak.toml").symlink_to(outside)
        with pytest.raises(InvalidIdentifierError):
            locate_theme("leak", themes_dir)
        with pytest.raises(InvalidIdentifierError):
            locate_theme("leak.toml", themes_dir)

    def test_symlink_within_themes_dir_allowed(self, themes_dir):
        (themes_dir / "vampire.toml").symlink_to(themes_dir / "dracula.toml")
        assert locate_theme("vampire", themes_dir) == themes_dir / "vampire.toml"

    def test_directory_is_not_a_theme(self, themes_dir):
        (themes_dir / "nord").mkdir()
        with pytest.raises(ThemeNotFoundError):
            locate_theme("nord", themes_dir)

    def test_tie_break_prefers_config_format(self, themes_dir, caplog):
        (themes_dir / "dracula.yml").write_text("colors: {}\n")
        with caplog.at_level(logging.WARNING, logger="termtheme.locator"):
            chosen = locate_theme("dracula", themes_dir, preferred_suffixes=(".yml", ".yaml"))
        assert chosen.name == "dracula.yml"
        assert "dracula.toml" in caplog.text

    def test_tie_break_without_preference_is_lexicographic(self, themes_dir):
        (themes_dir / "dracula.json").write_text("{}")
        (themes_dir / "dracula.yaml").write_text("colors: {}\n")
        assert locate_theme("dracula", themes_dir).name == "dracula.json"

    def test_tie_break_is_deterministic(self, themes_dir):
        (themes_dir / "dracula.yml").write_text("colors: {}\n")
        picks = {locate_theme("dracula", themes_dir, (".toml",)).name for _ in range(5)}
        assert picks == {"dracula.toml"}


class TestListThemes:

    def test_sorted_entries(self, themes_dir):
        (themes_dir / "dracula.yml").write_text("colors: {}\n")
        (themes_dir / ".hidden.toml").write_text("")
        (themes_dir / "subdir").mkdir()
        outside = themes_dir.parent.parent / "outside.toml"
        outside.write_text("x = 1\n")
        (themes_dir / "leak.toml").symlink_to(outside)

        entries = list_themes(themes_dir)
        assert [(e.name, e.suffix) for e in entries] == [
            ("dracula", ".toml"),
            ("dracula", ".yml"),
            ("solarized", ".toml"),
        ]
        assert all(isinstance(e, ThemeEntry) for e in entries)
        assert entries[0].path == themes_dir / "dracula.toml"

    def test_empty_dir(self, tmp_path):
        assert list_themes(tmp_path) == []

    def test_missing_dir(self, tmp_path):
        with pytest.raises(ThemeNotFoundError) as exc_info:
            list_themes(tmp_path / "missing")
        assert "Themes directory not found" in str(exc_info.value)
