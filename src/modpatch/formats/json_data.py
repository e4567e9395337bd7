"""
Structured (JSON) assets.

Game data JSON is not always valid JSON: some files carry comments or
trailing commas. Parsing tries the strict ``json`` module first and only then
falls back to JSON5. The detected type ("json" or "jsonc") is returned so the
caller can remember it and skip the strict attempt next time.

Writing is compact by default. ``format_json(..., indent=2, width=80)`` uses a
pretty-but-compact layout: any array or object that fits on the remaining line
width stays on one line, everything else is broken one item per line.
"""

import json
import logging
from typing import Any, Optional, Tuple, Union

import json5

from modpatch.errors import AssetParseError

logger = logging.getLogger(__name__)

JSON = "json"
JSONC = "jsonc"

DEFAULT_WIDTH = 80


def parse_json(content: str, path: str = "<string>", known_type: Optional[str] = None) -> Tuple[Any, str]:
    """Parse JSON text, strict first then relaxed.

    Returns ``(data, type)`` where type is ``"json"`` or ``"jsonc"``.
    Raises AssetParseError when neither parser accepts the text.
    """
    strict_error: Optional[json.JSONDecodeError] = None
    if known_type in (None, JSON):
        try:
            return json.loads(content), JSON
        except json.JSONDecodeError as e:
            strict_error = e
    try:
        data = json5.loads(content)
    except ValueError as e:
        if strict_error is not None:
            raise AssetParseError(path, str(e), strict_error.lineno, strict_error.colno) from e
        raise AssetParseError(path, str(e)) from e
    return data, JSONC


def _one_line(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(", ", ": "))


def _pretty_compact(obj: Any, indent: str, max_length: float, current_indent: str, reserved: int) -> str:
    available = max_length - len(current_indent) - reserved
    flat = _one_line(obj)
    if len(flat) <= available:
        return flat

    if isinstance(obj, (list, tuple)) and obj:
        next_indent = current_indent + indent
        last = len(obj) - 1
        items = [
            _pretty_compact(item, indent, max_length, next_indent, 0 if i == last else 1)
            for i, item in enumerate(obj)
        ]
        start, end = "[", "]"
    elif isinstance(obj, dict) and obj:
        next_indent = current_indent + indent
        last = len(obj) - 1
        items = []
        for i, (key, value) in enumerate(obj.items()):
            key_part = json.dumps(str(key), ensure_ascii=False) + ": "
            reserve = len(key_part) + (0 if i == last else 1)
            items.append(key_part + _pretty_compact(value, indent, max_length, next_indent, reserve))
        start, end = "{", "}"
    else:
        return flat

    return f"\n{current_indent}".join([start, indent + f",\n{next_indent}".join(items), end])


def format_json(data: Any, indent: Union[int, str, None] = None, width: Optional[int] = None) -> str:
    """Serialize structured data.

    Compact when neither ``indent`` nor ``width`` is given. An integer indent
    means that many spaces; an empty indent keeps everything on one line.
    """
    if indent is None and width is None:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    indent_unit = indent if isinstance(indent, str) else " " * (indent or 0)
    max_length = float("inf") if indent_unit == "" else (width if width is not None else DEFAULT_WIDTH)
    return _pretty_compact(data, indent_unit, max_length, "", 0)
