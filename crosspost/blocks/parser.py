"""
Block document parser.

Follows the WordPress block grammar as implemented by ``parse_blocks()``:

* ``<!-- wp:namespace/name {"json":"attrs"} -->`` opens a block,
* ``<!-- /wp:namespace/name -->`` closes it,
* ``<!-- wp:namespace/name {"json":"attrs"} /-->`` is a block without content,
* anything between top-level blocks is freeform HTML (a node without name).

Parsing is lenient in the same way WordPress is: blocks left open at the
end of the document are closed there, a closer with nothing open turns the
rest of the document into freeform HTML, and closer names are not compared
with the opener.  Nothing is repaired; the best-effort tree is returned as
is.

Unlike WordPress, block names are kept exactly as written (``paragraph``
stays ``paragraph`` rather than becoming ``core/paragraph``) and the raw
attribute text is kept next to the decoded attributes, so a document that
is parsed and serialized without changes comes back byte for byte.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from crosspost.models import BlockNode
from crosspost.utils.errors import log_message

_BLOCK_MARKER = "<!-- wp:"

# The attrs group stops at the first "}" followed by whitespace and the end
# of the comment, which keeps matching linear on long payloads.
_TOKEN = re.compile(
    r"<!--\s+(?P<closer>/)?wp:(?P<name>(?:[a-z][a-z0-9_-]*/)?[a-z][a-z0-9_-]*)\s+"
    r"(?P<attrs>\{(?:[^}]|\}(?!\s+/?-->))*\}\s+)?"
    r"(?P<void>/)?-->",
    re.DOTALL,
)


def has_blocks(document: Optional[str]) -> bool:
    return bool(document) and _BLOCK_MARKER in document


class _Frame:
    """An opened block waiting for its closer."""

    def __init__(
        self,
        name: str,
        attrs: Dict[str, Any],
        attrs_source: Optional[str],
        token_start: int,
        token_end: int,
        leading_html_start: Optional[int],
    ) -> None:
        self.name = name
        self.attrs = attrs
        self.attrs_source = attrs_source
        self.token_start = token_start
        self.prev_offset = token_end
        self.leading_html_start = leading_html_start
        self.inner_html = ""
        self.inner_content: List[Optional[str]] = []
        self.inner_blocks: List[BlockNode] = []

    def add_html(self, html: str) -> None:
        if html:
            self.inner_html += html
            self.inner_content.append(html)

    def add_block(self, block: BlockNode) -> None:
        self.inner_blocks.append(block)
        self.inner_content.append(None)

    def to_node(self) -> BlockNode:
        return BlockNode(
            block_name=self.name,
            attrs=self.attrs,
            attrs_source=self.attrs_source,
            inner_html=self.inner_html,
            inner_content=self.inner_content,
            inner_blocks=self.inner_blocks,
        )


def _freeform(html: str) -> BlockNode:
    return BlockNode(block_name=None, inner_html=html, inner_content=[html])


def _decode_attrs(source: Optional[str], name: str) -> Dict[str, Any]:
    if not source:
        return {}
    try:
        attrs = json.loads(source)
    except ValueError as e:
        log_message(f"Block '{name}' has unreadable attributes, treating them as empty: {e}", level="WARNING")
        return {}
    return attrs if isinstance(attrs, dict) else {}


class BlockParser:
    def __init__(self, document: str) -> None:
        self.document = document
        self.offset = 0
        self.output: List[BlockNode] = []
        self.stack: List[_Frame] = []

    def parse(self) -> List[BlockNode]:
        while self._proceed():
            pass
        return self.output

    def _add_freeform(self) -> None:
        html = self.document[self.offset:]
        if html:
            self.output.append(_freeform(html))

    def _add_inner_block(self, block: BlockNode, token_start: int, last_offset: int) -> None:
        parent = self.stack[-1]
        parent.add_html(self.document[parent.prev_offset:token_start])
        parent.add_block(block)
        parent.prev_offset = last_offset

    def _add_block_from_stack(self, end_offset: Optional[int] = None) -> None:
        frame = self.stack.pop()
        frame.add_html(self.document[frame.prev_offset:end_offset])
        if frame.leading_html_start is not None:
            leading = self.document[frame.leading_html_start:frame.token_start]
            if leading:
                self.output.append(_freeform(leading))
        self.output.append(frame.to_node())

    def _proceed(self) -> bool:
        match = _TOKEN.search(self.document, self.offset)
        depth = len(self.stack)

        if match is None:
            if depth == 0:
                self._add_freeform()
            else:
                if depth > 1:
                    log_message(f"{depth} blocks left open at end of document", level="WARNING")
                while self.stack:
                    self._add_block_from_stack()
            return False

        start, end = match.span()
        name = match.group("name")
        attrs_text = match.group("attrs")
        attrs_source = attrs_text.rstrip() if attrs_text else None
        leading_html_start = self.offset if start > self.offset else None

        if match.group("closer"):
            if depth == 0:
                log_message(f"Unexpected closer for '{name}', keeping the rest of the document as HTML", level="WARNING")
                self._add_freeform()
                return False
            if depth == 1:
                self._add_block_from_stack(start)
            else:
                frame = self.stack.pop()
                frame.add_html(self.document[frame.prev_offset:start])
                self._add_inner_block(frame.to_node(), frame.token_start, end)
            self.offset = end
            return True

        attrs = _decode_attrs(attrs_source, name)

        if match.group("void"):
            block = BlockNode(block_name=name, attrs=attrs, attrs_source=attrs_source)
            if depth == 0:
                if leading_html_start is not None:
                    self.output.append(_freeform(self.document[leading_html_start:start]))
                self.output.append(block)
            else:
                self._add_inner_block(block, start, end)
            self.offset = end
            return True

        self.stack.append(_Frame(name, attrs, attrs_source, start, end, leading_html_start))
        self.offset = end
        return True


def parse_blocks(document: str) -> List[BlockNode]:
    """Split ``document`` into top-level :class:`BlockNode` objects."""
    if not document:
        return []
    return BlockParser(document).parse()
