"""Theme lookup: turn a theme name into a file inside the themes directory."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .errors import InvalidIdentifierError, ThemeNotFoundError

logger = logging.getLogger(__name__)

_SEPARATORS = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())


@dataclass(frozen=True)
class ThemeEntry:
    """A theme file found in the themes directory."""
    name: str
    path: Path
    suffix: str


def validate_identifier(identifier: str) -> str:
    """Return the cleaned identifier or raise InvalidIdentifierError."""
    name = (identifier or "").strip()
    if not name:
        raise InvalidIdentifierError(identifier or "", "theme name is empty")
    if name in (".", ".."):
        raise InvalidIdentifierError(identifier, "path traversal is not allowed")
    if any(sep in name for sep in _SEPARATORS):
        raise InvalidIdentifierError(identifier, "theme name must not contain path separators")
    if "\x00" in name:
        raise InvalidIdentifierError(identifier, "theme name contains a NUL byte")
    if name.startswith("."):
        raise InvalidIdentifierError(identifier, "hidden files are not themes")
    return name


def _ensure_inside(name: str, themes_dir: Path) -> Path:
    """Join ``name`` to the themes directory and check it stays a direct child."""
    base = Path(os.path.normpath(os.path.abspath(themes_dir)))
    candidate = Path(os.path.normpath(base / name))
    if candidate.parent != base:
        raise InvalidIdentifierError(name, f"resolves outside {base}")
    return candidate


def _resolves_inside(path: Path, real_base: str) -> bool:
    """True when ``path`` with symlinks followed still lies under ``real_base``."""
    real = os.path.realpath(path)
    return real != real_base and os.path.commonpath([real, real_base]) == real_base


def _order_candidates(candidates: Sequence[Path], preferred_suffixes: Sequence[str]) -> List[Path]:
    """Preferred suffixes first (in the given order), then the rest by suffix."""
    preferred = [s.lower() for s in preferred_suffixes]

    def key(path: Path):
        suffix = path.suffix.lower()
        if suffix in preferred:
            return (0, preferred.index(suffix), path.suffix)
        return (1, 0, path.suffix)

    return sorted(candidates, key=key)


def locate_theme(identifier: str, themes_dir: Path,
                 preferred_suffixes: Sequence[str] = ()) -> Path:
    """Resolve a theme name to the absolute path of its file.

    ``identifier`` is a filename stem (``dracula``) or a full filename
    (``dracula.toml``). When several files share the stem, files whose suffix
    is listed in ``preferred_suffixes`` win in that order; any others follow
    ordered by suffix. The choice is logged when it was ambiguous.
    Symlinks inside the directory are followed, but a theme whose real file
    lies outside the directory is refused.
    """
    name = validate_identifier(identifier)
    target = _ensure_inside(name, themes_dir)
    base = target.parent

    if not base.is_dir():
        raise ThemeNotFoundError(name, base)

    real_base = os.path.realpath(base)
    if target.suffix and target.is_file():
        if not _resolves_inside(target, real_base):
            raise InvalidIdentifierError(name, f"symlink resolves outside {base}")
        return target

    candidates = [
        child for child in base.iterdir()
        if child.stem == name and child.suffix and child.is_file()
    ]
    if not candidates:
        raise ThemeNotFoundError(name, base)
    inside = [c for c in candidates if _resolves_inside(c, real_base)]
    if not inside:
        raise InvalidIdentifierError(name, f"symlink resolves outside {base}")
    candidates = inside

    ordered = _order_candidates(candidates, preferred_suffixes)
    chosen = ordered[0]
    if len(ordered) > 1:
        logger.warning(
            "Theme '%s' matches %d files; using %s (ignored: %s)",
            name, len(ordered), chosen.name,
            ", ".join(p.name for p in ordered[1:]),
        )
    return chosen


def list_themes(themes_dir: Path) -> List[ThemeEntry]:
    """Return the theme files in ``themes_dir``, sorted by name then suffix."""
    base = Path(os.path.abspath(themes_dir))
    if not base.is_dir():
        raise ThemeNotFoundError("", base)

    real_base = os.path.realpath(base)
    entries = [
        ThemeEntry(name=child.stem, path=child, suffix=child.suffix)
        for child in base.iterdir()
        if not child.name.startswith(".") and child.is_file()
        and _resolves_inside(child, real_base)
    ]
    entries.sort(key=lambda e: (e.name, e.suffix))
    return entries
