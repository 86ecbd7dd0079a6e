from __future__ import annotations

from typing import Iterable, List

from crosspost.models import BlockNode

from .escaping import encode_attributes


def _attributes_text(node: BlockNode) -> str:
    if node.attrs_source is not None:
        return node.attrs_source
    if not node.attrs:
        return ""
    return encode_attributes(node.attrs)


def serialize_block(node: BlockNode) -> str:
    """
    Render one node back to block markup.

    Freeform nodes are their HTML.  Named nodes without inner content use the
    self-closing comment; otherwise HTML fragments and inner blocks are
    interleaved in their original order, each ``None`` placeholder taking the
    next inner block.
    """
    if node.is_freeform:
        return "".join(piece for piece in node.inner_content if piece) or node.inner_html

    attrs = _attributes_text(node)
    opener = f"<!-- wp:{node.block_name} "
    if attrs:
        opener += f"{attrs} "

    if not node.inner_content:
        return f"{opener}/-->"

    parts: List[str] = [f"{opener}-->"]
    inner_blocks = iter(node.inner_blocks)
    for piece in node.inner_content:
        if piece is None:
            inner = next(inner_blocks, None)
            if inner is not None:
                parts.append(serialize_block(inner))
        else:
            parts.append(piece)
    parts.append(f"<!-- /wp:{node.block_name} -->")
    return "".join(parts)


def serialize_blocks(nodes: Iterable[BlockNode]) -> str:
    return "".join(serialize_block(node) for node in nodes)
