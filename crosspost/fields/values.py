"""
Helpers for raw meta values as they come out of WordPress.

Meta values arrive as whatever the REST API handed over: numbers, numeric
strings, JSON arrays, or PHP-serialized arrays (ACF stores galleries,
relationships and flexible content layouts as indexed arrays, and link
fields as ``title`` / ``url`` / ``target`` associative arrays).
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple


class _PhpReader:
    """
    Reads PHP ``serialize()`` output made of arrays and scalars.  String
    lengths are byte counts of the UTF-8 text, so the reader works on bytes.
    Arrays whose keys are all integers become lists, any other array a dict
    with string keys.
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def _until(self, stop: bytes) -> bytes:
        end = self.data.index(stop, self.pos)
        chunk = self.data[self.pos:end]
        self.pos = end + len(stop)
        return chunk

    def read(self) -> Any:
        tag = self.data[self.pos:self.pos + 2]
        self.pos += 2
        if tag == b"N;":
            return None
        if tag == b"i:":
            return int(self._until(b";"))
        if tag == b"d:":
            return float(self._until(b";"))
        if tag == b"b:":
            return self._until(b";") == b"1"
        if tag == b"s:":
            length = int(self._until(b':"'))
            end = self.pos + length
            if self.data[end:end + 2] != b'";':
                raise ValueError("string length does not match")
            text = self.data[self.pos:end].decode("utf-8")
            self.pos = end + 2
            return text
        if tag == b"a:":
            count = int(self._until(b":{"))
            pairs = []
            for _ in range(count):
                key = self.read()
                if not isinstance(key, (int, str)) or isinstance(key, bool):
                    raise ValueError("array keys are integers or strings")
                pairs.append((key, self.read()))
            if self.data[self.pos:self.pos + 1] != b"}":
                raise ValueError("array is not terminated")
            self.pos += 1
            if all(isinstance(key, int) for key, _ in pairs):
                return [value for _, value in pairs]
            return {str(key): value for key, value in pairs}
        raise ValueError(f"unsupported serialized type {tag!r}")


def _unserialize_php_array(text: str) -> Optional[Any]:
    data = text.encode("utf-8")
    reader = _PhpReader(data)
    try:
        value = reader.read()
    except ValueError:
        return None
    if reader.pos != len(data) or not isinstance(value, (list, dict)):
        return None
    return value


def maybe_unserialize(value: Any) -> Any:
    """
    Decode ``value`` when it is a serialized list or object, leave it alone
    otherwise.  Handles JSON text and PHP-serialized arrays.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text[:1] in ("[", "{"):
        try:
            return json.loads(text)
        except ValueError:
            return value
    if text.startswith("a:"):
        decoded = _unserialize_php_array(text)
        if decoded is not None:
            return decoded
    return value


def is_empty(value: Any) -> bool:
    """PHP ``empty()`` for the values we deal with."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == "" or value == "0"
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def to_list(value: Any) -> Tuple[List[Any], bool]:
    """Return ``(items, was_scalar)`` for an id or a list of ids."""
    value = maybe_unserialize(value)
    if isinstance(value, (list, tuple)):
        return [v for v in value if not is_empty(v)], False
    if isinstance(value, dict):
        return [v for v in value.values() if not is_empty(v)], False
    if is_empty(value):
        return [], True
    return [value], True


def row_count(value: Any) -> Tuple[int, List[str]]:
    """
    Read a repeater or flexible content counter entry.

    Repeaters store the number of rows, flexible content stores the list of
    layout names (one per row).  Returns ``(count, layout_names)`` where
    ``layout_names`` is empty when the entry is a plain number.
    """
    value = maybe_unserialize(value)
    if isinstance(value, (list, tuple)):
        names = [str(v) for v in value]
        return len(names), names
    if isinstance(value, bool):
        return 0, []
    if isinstance(value, int):
        return max(0, value), []
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()), []
    return 0, []
