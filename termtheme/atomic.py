"""Crash-safe file replacement."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from .errors import ConfigUnwritableError

logger = logging.getLogger(__name__)


def real_target(path: Path) -> Path:
    """Follow symlinks so a linked dotfile is updated instead of replaced by a copy."""
    return Path(os.path.realpath(path))


def _fsync_dir(directory: Path) -> None:
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return  # not supported on this platform
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_write_text(path: Path, content: str, encoding: str = "utf-8") -> Path:
    """Write ``content`` to ``path`` through a temp file and a rename.

    The temp file lives in the target's directory so the rename never crosses
    filesystems. Readers see either the old or the new file, never a partial
    one. Returns the path that was actually replaced.

    Raises:
        ConfigUnwritableError: the temp file could not be written or renamed;
            the target is untouched.
    """
    target = real_target(path)
    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        mode = None
    except OSError as exc:
        raise ConfigUnwritableError(path, exc) from exc

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            except OSError as cleanup_exc:
                logger.warning("Could not remove temp file %s: %s", tmp_name, cleanup_exc)
        raise ConfigUnwritableError(path, exc) from exc

    _fsync_dir(target.parent)
    logger.info("Wrote %s", target)
    return target
