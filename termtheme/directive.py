"""Minimal, format-aware editing of the theme ``import`` directive.

Only the text of the ``import`` directive is rewritten; every other byte of
the configuration is carried over verbatim. The whole document is parsed
before and after the edit, and the edit is rejected unless the parsed data
outside the directive is unchanged and the directive holds exactly the
expected list.

TOML configs carry the directive as ``import`` inside ``[general]``, as the
dotted root key ``general.import``, or as the legacy root key ``import``.
YAML configs carry it as the root key ``import:``.
"""

from __future__ import annotations

import copy
import json
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml

from .errors import MalformedConfigError


@dataclass(frozen=True)
class DirectiveSpan:
    """Location of a directive value inside the config text."""
    line_start: int
    value_start: int
    value_end: int
    line_end: int


@dataclass(frozen=True)
class DirectiveEdit:
    """Result of rewriting the directive."""
    text: str
    imports: List[str]
    previous: Optional[str]
    changed: bool


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _next_line(text: str, i: int) -> int:
    """Index just past the newline that ends the line containing ``i``."""
    idx = text.find("\n", i)
    return len(text) if idx == -1 else idx + 1


def _quote(value: str) -> str:
    # JSON string escapes are valid in TOML basic strings and YAML double-quoted scalars.
    return json.dumps(value, ensure_ascii=False)


def merge_imports(current: Sequence[str], theme_entry: str,
                  is_managed: Callable[[str], bool]) -> Tuple[List[str], Optional[str]]:
    """Replace every managed entry with ``theme_entry``.

    The new entry takes the place of the first managed entry, or goes last when
    there was none. Unmanaged entries keep their order.
    """
    result: List[str] = []
    previous: Optional[str] = None
    placed = False
    for entry in current:
        if is_managed(entry):
            if previous is None:
                previous = entry
            if not placed:
                result.append(theme_entry)
                placed = True
            continue
        result.append(entry)
    if not placed:
        result.append(theme_entry)
    return result, previous


class ConfigFormat:
    """Parse, locate and rewrite the import directive for one config syntax."""

    name = ""
    suffixes: Tuple[str, ...] = ()

    def load(self, text: str) -> Dict[str, Any]:
        raise NotImplementedError

    def imports(self, data: Dict[str, Any]) -> Optional[List[str]]:
        raise NotImplementedError

    def without_imports(self, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def locate(self, text: str) -> List[DirectiveSpan]:
        raise NotImplementedError

    def replace(self, text: str, span: DirectiveSpan, entries: List[str]) -> str:
        raise NotImplementedError

    def insert(self, text: str, entries: List[str]) -> str:
        raise NotImplementedError

    @staticmethod
    def _check_entries(value: Any) -> List[str]:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise MalformedConfigError(None, "'import' must be a list of file paths")
        return list(value)


# ── TOML ────────────────────────────────────────────────────


_KEY_PART = re.compile(r'"((?:[^"\\]|\\.)*)"|\'([^\']*)\'|([A-Za-z0-9_-]+)')
_ROOT_KEYS = {"import", "general.import"}


def _normalize_key(raw: str) -> str:
    return ".".join(a or b or c for a, b, c in _KEY_PART.findall(raw))


def _skip_string(text: str, i: int) -> int:
    """Return the index just past the string literal opening at ``i``."""
    n = len(text)
    quote = text[i]
    triple = text.startswith(quote * 3, i)
    j = i + (3 if triple else 1)
    while j < n:
        c = text[j]
        if c == "\\" and quote == '"':
            j += 2
            continue
        if triple:
            if text.startswith(quote * 3, j):
                end = j + 3
                # Up to two quotes may sit right before the closing delimiter.
                extra = 0
                while end < n and text[end] == quote and extra < 2:
                    end += 1
                    extra += 1
                return end
        elif c == quote:
            return j + 1
        elif c == "\n":
            break
        j += 1
    raise MalformedConfigError(None, "unterminated string")


def _skip_value(text: str, i: int) -> int:
    """Return the index just past the TOML value starting at ``i``."""
    n = len(text)
    if i >= n:
        raise MalformedConfigError(None, "missing value")
    c = text[i]
    if c in "\"'":
        return _skip_string(text, i)
    if c in "[{":
        depth = 0
        j = i
        while j < n:
            c = text[j]
            if c in "\"'":
                j = _skip_string(text, j)
                continue
            if c == "#":
                j = text.find("\n", j)
                if j == -1:
                    break
                continue
            if c in "[{":
                depth += 1
            elif c in "]}":
                depth -= 1
                if depth == 0:
                    return j + 1
            j += 1
        raise MalformedConfigError(None, "unterminated array")
    j = i
    while j < n and text[j] not in "#\r\n":
        j += 1
    while j > i and text[j - 1] in " \t":
        j -= 1
    return j


def _scan_key(text: str, i: int, terminator: str) -> int:
    """Return the index of ``terminator`` that ends the key starting at ``i``."""
    n = len(text)
    while i < n:
        c = text[i]
        if c in "\"'":
            i = _skip_string(text, i)
            continue
        if c == terminator:
            return i
        if c == "\n":
            break
        i += 1
    raise MalformedConfigError(None, "could not read key")


@dataclass(frozen=True)
class _TomlStatement:
    kind: str  # "table" | "pair"
    key: str
    table: Optional[str]
    line_start: int
    value_start: int
    value_end: int
    line_end: int


def _toml_statements(text: str):
    """Yield the top-level statements of a TOML document in order."""
    n = len(text)
    i = 0
    table: Optional[str] = ""
    while i < n:
        c = text[i]
        if c in " \t\r\n":
            i += 1
            continue
        if c == "#":
            i = _next_line(text, i)
            continue
        line_start = text.rfind("\n", 0, i) + 1
        if c == "[":
            is_array = text.startswith("[[", i)
            name_start = i + (2 if is_array else 1)
            name_end = _scan_key(text, name_start, "]")
            name = _normalize_key(text[name_start:name_end])
            table = None if is_array else name
            line_end = _next_line(text, name_end)
            yield _TomlStatement("table", name, table, line_start, name_end, name_end, line_end)
            i = line_end
            continue
        key_end = _scan_key(text, i, "=")
        key = _normalize_key(text[i:key_end])
        j = key_end + 1
        while j < n and text[j] in " \t":
            j += 1
        value_end = _skip_value(text, j)
        line_end = _next_line(text, value_end)
        yield _TomlStatement("pair", key, table, line_start, j, value_end, line_end)
        i = line_end


class TomlFormat(ConfigFormat):
    name = "toml"
    suffixes = (".toml",)

    def load(self, text: str) -> Dict[str, Any]:
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise MalformedConfigError(None, f"invalid TOML: {exc}") from exc

    def imports(self, data: Dict[str, Any]) -> Optional[List[str]]:
        found = []
        if "import" in data:
            found.append(data["import"])
        general = data.get("general")
        if isinstance(general, dict) and "import" in general:
            found.append(general["import"])
        if len(found) > 1:
            raise MalformedConfigError(None, "both 'import' and 'general.import' are set")
        if not found:
            return None
        return self._check_entries(found[0])

    def without_imports(self, data: Dict[str, Any]) -> Dict[str, Any]:
        stripped = copy.deepcopy(data)
        stripped.pop("import", None)
        general = stripped.get("general")
        if isinstance(general, dict):
            general.pop("import", None)
            if not general:
                del stripped["general"]
        return stripped

    def locate(self, text: str) -> List[DirectiveSpan]:
        spans = []
        for stmt in _toml_statements(text):
            if stmt.kind != "pair":
                continue
            if (stmt.table == "" and stmt.key in _ROOT_KEYS) or (
                stmt.table == "general" and stmt.key == "import"
            ):
                spans.append(DirectiveSpan(stmt.line_start, stmt.value_start,
                                           stmt.value_end, stmt.line_end))
        return spans

    def _render(self, entries: List[str], original: str, indent: str, nl: str) -> str:
        items = [_quote(e) for e in entries]
        if "\n" not in original:
            return "[" + ", ".join(items) + "]"
        item_indent = indent + "    "
        for line in original.splitlines()[1:]:
            stripped = line.strip()
            if stripped and not stripped.startswith(("]", "#")):
                item_indent = line[: len(line) - len(line.lstrip())]
                break
        body = "".join(f"{item_indent}{item},{nl}" for item in items)
        return f"[{nl}{body}{indent}]"

    def replace(self, text: str, span: DirectiveSpan, entries: List[str]) -> str:
        line = text[span.line_start:span.value_start]
        indent = line[: len(line) - len(line.lstrip())]
        original = text[span.value_start:span.value_end]
        rendered = self._render(entries, original, indent, _newline(text))
        return text[:span.value_start] + rendered + text[span.value_end:]

    def insert(self, text: str, entries: List[str]) -> str:
        nl = _newline(text)
        array = self._render(entries, "", "", nl)
        for stmt in _toml_statements(text):
            if stmt.kind == "table" and stmt.table == "general":
                anchor = stmt.line_end
                prefix = "" if text[:anchor].endswith("\n") else nl
                return text[:anchor] + f"{prefix}import = {array}{nl}" + text[anchor:]
        return f"general.import = {array}{nl}" + text


# ── YAML ────────────────────────────────────────────────────


class YamlFormat(ConfigFormat):
    name = "yaml"
    suffixes = (".yml", ".yaml")

    def load(self, text: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise MalformedConfigError(None, f"invalid YAML: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MalformedConfigError(None, "top level of the config is not a mapping")
        return data

    def imports(self, data: Dict[str, Any]) -> Optional[List[str]]:
        if "import" not in data:
            return None
        if data["import"] is None:
            return []
        return self._check_entries(data["import"])

    def without_imports(self, data: Dict[str, Any]) -> Dict[str, Any]:
        stripped = dict(data)
        stripped.pop("import", None)
        return stripped

    def locate(self, text: str) -> List[DirectiveSpan]:
        try:
            root = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise MalformedConfigError(None, f"invalid YAML: {exc}") from exc
        if not isinstance(root, yaml.MappingNode):
            return []
        if root.flow_style:
            raise MalformedConfigError(None, "top-level flow mapping cannot be edited in place")

        spans = []
        for key_node, value_node in root.value:
            if not isinstance(key_node, yaml.ScalarNode) or key_node.value != "import":
                continue
            line_start = text.rfind("\n", 0, key_node.start_mark.index) + 1
            value_start = text.find(":", key_node.end_mark.index) + 1
            if value_start == 0 or value_node.start_mark.index < value_start:
                raise MalformedConfigError(None, "'import' is an alias of a value defined elsewhere")

            if isinstance(value_node, yaml.SequenceNode) and value_node.flow_style:
                value_end = value_node.end_mark.index
            else:
                # Block collections end at the next token, so take the last item
                # instead and run to the end of its line.
                last = value_node
                if isinstance(value_node, yaml.SequenceNode) and value_node.value:
                    last = value_node.value[-1]
                value_end = text.find("\n", last.end_mark.index)
                if value_end == -1:
                    value_end = len(text)
                if value_end > value_start and text[value_end - 1] == "\r":
                    value_end -= 1
            spans.append(DirectiveSpan(line_start, value_start, value_end,
                                       _next_line(text, value_end)))
        return spans

    def _render_block(self, key: str, entries: List[str], item_indent: str, nl: str) -> str:
        items = "".join(f"{nl}{item_indent}- {_quote(e)}" for e in entries)
        return f"{key}{items}"

    def replace(self, text: str, span: DirectiveSpan, entries: List[str]) -> str:
        nl = _newline(text)
        key = text[span.line_start:span.value_start]
        value = text[span.value_start:span.value_end]

        if value.lstrip().startswith("["):
            rendered = f"{key} [" + ", ".join(_quote(e) for e in entries) + "]"
            return text[:span.line_start] + rendered + text[span.value_end:]

        first_line = value.split("\n", 1)[0].rstrip("\r")
        comment = first_line.rstrip() if "#" in first_line else ""
        item_indent = "  "
        for line in value.splitlines()[1:]:
            stripped = line.lstrip()
            if stripped.startswith("-"):
                item_indent = line[: len(line) - len(stripped)]
                break
        rendered = self._render_block(key + comment, entries, item_indent, nl)
        return text[:span.line_start] + rendered + text[span.value_end:]

    def insert(self, text: str, entries: List[str]) -> str:
        nl = _newline(text)
        block = self._render_block("import:", entries, "  ", nl) + nl
        lines = text.splitlines(keepends=True)
        pos = 0
        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith(("#", "%")):
                pos += len(line)
                continue
            if stripped == "---" or stripped.startswith("--- "):
                end = pos + len(line)
                prefix = "" if line.endswith("\n") else nl
                return text[:end] + prefix + block + text[end:]
            break
        return block + text


_FORMATS: Tuple[ConfigFormat, ...] = (TomlFormat(), YamlFormat())


def format_for_path(path: Path) -> ConfigFormat:
    """Pick the config syntax from the file suffix."""
    suffix = path.suffix.lower()
    for fmt in _FORMATS:
        if suffix in fmt.suffixes:
            return fmt
    raise MalformedConfigError(path, f"unsupported config format '{suffix or path.name}'")


def read_imports(text: str, fmt: ConfigFormat) -> List[str]:
    """Return the directive entries of ``text`` (empty when there is none)."""
    return fmt.imports(fmt.load(text)) or []


def set_theme_import(text: str, fmt: ConfigFormat, theme_entry: str,
                     is_managed: Callable[[str], bool]) -> DirectiveEdit:
    """Point the import directive of ``text`` at ``theme_entry``.

    Raises MalformedConfigError (with no path) whenever the directive cannot be
    found or rewritten unambiguously.
    """
    data = fmt.load(text)
    current = fmt.imports(data)
    spans = fmt.locate(text)

    if len(spans) > 1:
        raise MalformedConfigError(None, "more than one 'import' directive")
    if current is not None and not spans:
        raise MalformedConfigError(None, "'import' is set in a form that cannot be edited in place")
    if spans and current is None:
        raise MalformedConfigError(None, "found an 'import' line that is not a top-level directive")

    entries, previous = merge_imports(current or [], theme_entry, is_managed)
    if current is not None and entries == current:
        return DirectiveEdit(text=text, imports=entries, previous=previous, changed=False)

    if spans:
        new_text = fmt.replace(text, spans[0], entries)
    else:
        new_text = fmt.insert(text, entries)

    try:
        check = fmt.load(new_text)
        rewritten = fmt.imports(check)
    except MalformedConfigError as exc:
        raise MalformedConfigError(None, f"edit produced an invalid document ({exc.reason})") from exc
    if rewritten != entries or fmt.without_imports(check) != fmt.without_imports(data):
        raise MalformedConfigError(None, "edit would change settings outside the import directive")

    return DirectiveEdit(text=new_text, imports=entries, previous=previous, changed=True)
