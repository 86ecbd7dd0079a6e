"""
Escaping of block attribute text.

Block attributes live inside an HTML comment as JSON, so a transformed
field value has to be written in a form both the comment and the JSON
parser survive.  :func:`escape_attribute_text` returns the body of a JSON
string literal (without the surrounding quotes) in two steps:

1. the structural characters are always escaped: line breaks become the
   two-character ``\\r`` / ``\\n`` escapes, ``<``, ``>``, ``"`` and tab become
   ``\\u`` escapes, backslashes and other control characters are escaped as
   JSON requires;
2. every other character is written raw, unless the source document itself
   carried that character as a ``\\uXXXX`` escape.  The block editor writes
   some characters that way and the destination expects them back in the
   same form, so the document is scanned for escape sequences instead of
   keeping a fixed list of characters.

:func:`encode_attributes` serializes a whole attribute mapping the way
WordPress' ``serialize_block_attributes()`` does, emitting
:class:`EscapedText` values verbatim.
"""

from __future__ import annotations

import json
import re
from typing import Any, FrozenSet

_UNICODE_ESCAPE = re.compile(r"\\u([0-9a-fA-F]{4})")

_STRUCTURAL = {
    "\r": "\\r",
    "\n": "\\n",
    "\\": "\\\\",
}
_ALWAYS_UNICODE = frozenset('<>"\t')


class EscapedText(str):
    """A string that is already the body of a JSON string literal."""


def _unicode_escape(char: str) -> str:
    code = ord(char)
    if code > 0xFFFF:
        code -= 0x10000
        high, low = 0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)
        return "\\u%04x\\u%04x" % (high, low)
    return "\\u%04x" % code


def _code_units(char: str) -> FrozenSet[int]:
    code = ord(char)
    if code > 0xFFFF:
        code -= 0x10000
        return frozenset((0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)))
    return frozenset((code,))


def escaped_code_units(document: str) -> FrozenSet[int]:
    """UTF-16 code units that ``document`` spells as ``\\uXXXX`` escapes."""
    return frozenset(int(found, 16) for found in _UNICODE_ESCAPE.findall(document or ""))


def escape_attribute_text(value: str, document_escapes: FrozenSet[int] = frozenset()) -> EscapedText:
    out = []
    for char in value:
        if char in _STRUCTURAL:
            out.append(_STRUCTURAL[char])
        elif char in _ALWAYS_UNICODE or ord(char) < 0x20:
            out.append(_unicode_escape(char))
        elif ord(char) > 0x7F and _code_units(char) <= document_escapes:
            out.append(_unicode_escape(char))
        else:
            out.append(char)
    return EscapedText("".join(out))


def _encode_string(value: str) -> str:
    body = json.dumps(value, ensure_ascii=False)[1:-1]
    body = body.replace("--", "\\u002d\\u002d")
    body = body.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    # json.dumps only escapes quotes as \" and backslashes as \\; a \" that is
    # not itself preceded by an escaped backslash is an escaped quote.
    return re.sub(r'(?<!\\)((?:\\\\)*)\\"', lambda m: m.group(1) + "\\u0022", body)


def encode_attributes(value: Any) -> str:
    if isinstance(value, EscapedText):
        return f'"{value}"'
    if isinstance(value, str):
        return f'"{_encode_string(value)}"'
    if isinstance(value, dict):
        items = ",".join(f"{encode_attributes(str(k))}:{encode_attributes(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(encode_attributes(v) for v in value) + "]"
    return json.dumps(value)
