"""Tests for atomic config replacement."""

import os
import stat

import pytest

from termtheme.atomic import atomic_write_text
from termtheme.errors import ConfigUnwritableError


def _leftovers(directory):
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".tmp"))


class TestAtomicWrite:

    def test_replaces_content(self, tmp_path):
        path = tmp_path / "alacritty.toml"
        path.write_text("old = 1\n")
        assert atomic_write_text(path, "new = 2\n") == path
        assert path.read_text() == "new = 2\n"
        assert _leftovers(tmp_path) == []

    def test_creates_missing_file(self, tmp_path):
        path = tmp_path / "config.yml"
        atomic_write_text(path, "a: 1\n")
        assert path.read_text() == "a: 1\n"

    def test_keeps_permission_bits(self, tmp_path):
        path = tmp_path / "alacritty.toml"
        path.write_text("old = 1\n")
        os.chmod(path, 0o640)
        atomic_write_text(path, "new = 2\n")
        assert stat.S_IMODE(path.stat().st_mode) == 0o640

    def test_newlines_written_verbatim(self, tmp_path):
        path = tmp_path / "alacritty.toml"
        atomic_write_text(path, "a = 1\r\nb = 2\n")
        assert path.read_bytes() == b"a = 1\r\nb = 2\n"

    def test_follows_symlink(self, tmp_path):
        dotfiles = tmp_path / "dotfiles"
        dotfiles.mkdir()
        real = dotfiles / "alacritty.toml"
        real.write_text("old = 1\n")
        link = tmp_path / "alacritty.toml"
        link.symlink_to(real)

        assert atomic_write_text(link, "new = 2\n") == real
        assert link.is_symlink()
        assert real.read_text() == "new = 2\n"
        assert _leftovers(tmp_path) == []
        assert _leftovers(dotfiles) == []

    def test_failed_write_leaves_original(self, tmp_path, monkeypatch):
        path = tmp_path / "alacritty.toml"
        path.write_bytes(b"old = 1\n")

        def boom(fd):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "fsync", boom)
        with pytest.raises(ConfigUnwritableError) as exc_info:
            atomic_write_text(path, "new = 2\n")
        assert exc_info.value.exit_code == 8
        assert "original left untouched" in str(exc_info.value)
        assert path.read_bytes() == b"old = 1\n"
        assert _leftovers(tmp_path) == []

    def test_failed_rename_leaves_original(self, tmp_path, monkeypatch):
        path = tmp_path / "alacritty.toml"
        path.write_bytes(b"old = 1\n")

        def boom(src, dst):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(os, "replace", boom)
        with pytest.raises(ConfigUnwritableError):
            atomic_write_text(path, "new = 2\n")
        assert path.read_bytes() == b"old = 1\n"
        assert _leftovers(tmp_path) == []
