"""Interactive theme selection: built-in fuzzy list or an external picker command."""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Optional, Sequence

from .errors import PickerError
from .locator import ThemeEntry
from .ui import THEME_ACCENT, THEME_DIM, THEME_MATCH, THEME_ROW, THEME_SELECTED, THEME_WARN

logger = logging.getLogger(__name__)


def fuzzy_span_score(query: str, candidate: str) -> int | None:
    """Length of the shortest left-to-right span of ``candidate`` holding ``query``."""
    query_chars = query.lower()
    candidate_chars = candidate.lower()

    if not query_chars:
        return 0

    positions = []
    cursor = 0
    for char in query_chars:
        index = candidate_chars.find(char, cursor)
        if index < 0:
            return None
        positions.append(index)
        cursor = index + 1

    return positions[-1] - positions[0] + 1


def filter_names(query: str, names: Sequence[str]) -> list[int]:
    """Indexes of ``names`` matching ``query``: prefix, then substring, then fuzzy."""
    lowered = query.strip().lower()
    if not lowered:
        return list(range(len(names)))

    ranked = []
    for idx, name in enumerate(names):
        candidate = name.lower()
        if candidate.startswith(lowered):
            ranked.append(((0, 0), idx))
            continue
        pos = candidate.find(lowered)
        if pos >= 0:
            ranked.append(((1, pos), idx))
            continue
        span = fuzzy_span_score(lowered, candidate)
        if span is not None:
            ranked.append(((2, span), idx))
    ranked.sort()
    return [idx for _, idx in ranked]


def unique_names(entries: Sequence[ThemeEntry]) -> list[str]:
    """Theme names in listing order, each name once."""
    seen = set()
    names = []
    for entry in entries:
        if entry.name not in seen:
            seen.add(entry.name)
            names.append(entry.name)
    return names


def run_picker_command(command: str, names: Sequence[str]) -> Optional[str]:
    """Feed ``names`` to an external picker (one per line) and read its choice."""
    try:
        argv = shlex.split(command)
    except ValueError as exc:
        raise PickerError(command, str(exc)) from exc
    if not argv:
        raise PickerError(command, "empty command")

    try:
        proc = subprocess.run(
            argv,
            input="\n".join(names) + "\n",
            stdout=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as exc:
        raise PickerError(command, f"command not found: {argv[0]}") from exc
    except OSError as exc:
        raise PickerError(command, str(exc)) from exc

    if proc.returncode != 0:
        # fzf exits 130 on Esc/Ctrl-C and 1 when nothing matched.
        logger.info("Picker '%s' exited with %d", command, proc.returncode)
        return None

    lines = proc.stdout.splitlines()
    choice = lines[0].strip() if lines else ""
    return choice or None


def select_theme_interactive(names: Sequence[str], current: Optional[str] = None) -> Optional[str]:
    """Minimal theme list with inline filtering."""
    from prompt_toolkit.application import Application
    from prompt_toolkit.key_binding import KeyBindings
    from prompt_toolkit.layout.containers import HSplit, Window
    from prompt_toolkit.layout.controls import FormattedTextControl
    from prompt_toolkit.layout.layout import Layout

    if not names:
        return None

    query = [""]
    visible = [list(range(len(names)))]
    cursor = [names.index(current) if current in names else 0]
    result: list[Optional[str]] = [None]

    def refresh_visible():
        visible[0] = filter_names(query[0], names)
        if not visible[0]:
            cursor[0] = 0
            return
        cursor[0] = 0 if query[0] else min(cursor[0], len(visible[0]) - 1)

    def get_text():
        lines = []
        lines.append((f"bold {THEME_ACCENT}", " themes\n"))
        lines.append((THEME_DIM, " ↑↓ move • Home/End top/bottom • type filter • Enter apply • Esc clear/cancel\n"))

        q = query[0].strip()
        lines.append((THEME_MATCH if q else THEME_DIM, f" filter: {q or '(all)'}\n"))
        lines.append(("", "\n"))

        if not visible[0]:
            lines.append((THEME_WARN, " no matching themes\n"))
            lines.append((THEME_DIM, f"\n 0/{len(names)} shown"))
            return lines

        for pos, index in enumerate(visible[0]):
            name = names[index]
            is_cursor = pos == cursor[0]
            is_active = name == current
            pointer = "›" if is_cursor else " "
            active_mark = "●" if is_active else " "
            if is_cursor:
                style = THEME_SELECTED
            elif is_active:
                style = THEME_MATCH
            else:
                style = THEME_ROW
            lines.append((style, f" {pointer} {active_mark} {name}\n"))

        lines.append((THEME_DIM, f"\n {len(visible[0])}/{len(names)} shown • current=●"))
        return lines

    kb = KeyBindings()

    # Letters always go to the filter, so navigation stays on non-printing keys.
    @kb.add("up")
    @kb.add("c-p")
    def _up(_event):
        if visible[0]:
            cursor[0] = max(0, cursor[0] - 1)

    @kb.add("down")
    @kb.add("c-n")
    def _down(_event):
        if visible[0]:
            cursor[0] = min(len(visible[0]) - 1, cursor[0] + 1)

    @kb.add("home")
    def _top(_event):
        cursor[0] = 0

    @kb.add("end")
    def _bottom(_event):
        cursor[0] = max(0, len(visible[0]) - 1)

    @kb.add("backspace")
    def _backspace(_event):
        if query[0]:
            query[0] = query[0][:-1]
            refresh_visible()

    @kb.add("c-u")
    def _clear_query(_event):
        if query[0]:
            query[0] = ""
            refresh_visible()

    @kb.add("escape")
    def _escape(event):
        if query[0]:
            query[0] = ""
            refresh_visible()
            return
        event.app.exit()

    @kb.add("c-c")
    def _cancel(event):
        result[0] = None
        event.app.exit()

    @kb.add("enter")
    def _enter(event):
        if not visible[0]:
            return
        result[0] = names[visible[0][cursor[0]]]
        event.app.exit()

    @kb.add("<any>")
    def _type(event):
        data = event.key_sequence[0].data
        if not data or len(data) != 1:
            return
        if not data.isprintable() or data in ("\r", "\n", "\t", " "):
            return
        query[0] += data
        refresh_visible()

    control = FormattedTextControl(get_text)
    window = Window(content=control, always_hide_cursor=True)
    app = Application(layout=Layout(HSplit([window])), key_bindings=kb, full_screen=False)

    try:
        app.run()
    except (KeyboardInterrupt, EOFError):
        return None

    return result[0]


def pick_theme(entries: Sequence[ThemeEntry], picker: str = "builtin",
               current: Optional[str] = None) -> Optional[str]:
    """Let the user choose a theme; returns its name or None when cancelled."""
    names = unique_names(entries)
    if not names:
        return None
    if picker.strip().lower() == "builtin":
        return select_theme_interactive(names, current=current)
    return run_picker_command(picker, names)
