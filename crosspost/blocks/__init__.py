"""
Gutenberg block handling.

Currently this subpackage exposes the block parser and serializer, the
attribute escaping helpers and :class:`BlockContentProcessor` which ties
them to the field transformer.
"""

from .escaping import EscapedText, encode_attributes, escape_attribute_text, escaped_code_units
from .parser import has_blocks, parse_blocks
from .processor import BlockContentProcessor
from .serializer import serialize_block, serialize_blocks

__all__ = [
    "BlockContentProcessor",
    "EscapedText",
    "encode_attributes",
    "escape_attribute_text",
    "escaped_code_units",
    "has_blocks",
    "parse_blocks",
    "serialize_block",
    "serialize_blocks",
]
