"""
ACF block transformation.

``acf/*`` blocks keep their field values in ``attrs["data"]`` using the same
flat layout as post meta: ``title`` next to ``_title`` holding the field
key, repeater rows as ``items_0_title`` and so on.  Each value is run
through :class:`~crosspost.fields.transformer.FieldValueTransformer` with
the block data as the flat map.  Cells of repeaters, flexible content and
groups are transformed as composite cells, the same way their parent row
sees them.  Every result then passes the ``pre_crosspost_acf_block_value``
filter (``(value, field_key, destination)``) and text results are escaped
for the attribute payload.  Pointer entries are kept as they are.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional

from crosspost.fields.registry import DeclarationCache, FieldRegistry
from crosspost.fields.transformer import FieldValueTransformer
from crosspost.hooks import FilterRegistry
from crosspost.models import BlockNode, FieldPointer, ResolutionContext
from crosspost.utils.errors import log_message

from .escaping import escape_attribute_text, escaped_code_units
from .parser import has_blocks, parse_blocks
from .serializer import serialize_blocks

MANAGED_NAMESPACE = "acf/"
DATA_ATTRIBUTE = "data"
BLOCK_VALUE_FILTER = "pre_crosspost_acf_block_value"


class BlockContentProcessor:
    def __init__(
        self,
        registry: FieldRegistry,
        transformer: FieldValueTransformer,
        filters: Optional[FilterRegistry] = None,
    ) -> None:
        self.registry = registry
        self.transformer = transformer
        self.filters = filters or FilterRegistry()

    def _transform_data(
        self,
        data: Dict[str, Any],
        block_name: str,
        declarations: DeclarationCache,
        ctx: ResolutionContext,
        document_escapes: FrozenSet[int],
    ) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for key in data:
            if key.startswith("_"):
                if key not in fields:
                    fields[key] = data[key]
                continue
            pointer = FieldPointer.from_flat_map(data, key)
            declaration = declarations.get(pointer.declaration_ref)
            if declaration is None:
                log_message(f"Block '{block_name}': no declaration for '{key}', value left untouched", level="DEBUG")
                fields[key] = pointer.value
                continue
            value = self.transformer.transform(
                pointer.value,
                declaration,
                ctx.source_object_id,
                ctx,
                flat_map=data,
                path=[],
                key=key,
                is_subfield=not declaration.is_top_level,
            )
            value = self.filters.apply_filters(BLOCK_VALUE_FILTER, value, pointer.declaration_ref, ctx.destination)
            if isinstance(value, str):
                value = escape_attribute_text(value, document_escapes)
            fields[key] = value
            fields[f"_{key}"] = pointer.declaration_ref
        return fields

    def transform_block(
        self,
        node: BlockNode,
        declarations: DeclarationCache,
        ctx: ResolutionContext,
        document_escapes: FrozenSet[int] = frozenset(),
    ) -> BlockNode:
        """Transform ``node`` and its inner blocks, innermost first."""
        if node.inner_blocks:
            node = node.with_inner_blocks(
                [self.transform_block(inner, declarations, ctx, document_escapes) for inner in node.inner_blocks]
            )
        if not (node.block_name or "").startswith(MANAGED_NAMESPACE):
            return node
        data = node.attrs.get(DATA_ATTRIBUTE)
        if not data or not isinstance(data, dict):
            return node
        fields = self._transform_data(data, node.block_name, declarations, ctx, document_escapes)
        return node.with_attrs({**node.attrs, DATA_ATTRIBUTE: fields})

    def transform_blocks(
        self,
        nodes: List[BlockNode],
        ctx: ResolutionContext,
        document_escapes: FrozenSet[int] = frozenset(),
    ) -> List[BlockNode]:
        declarations = DeclarationCache(self.registry)
        return [self.transform_block(node, declarations, ctx, document_escapes) for node in nodes]

    def process(self, document: str, ctx: ResolutionContext) -> str:
        """
        Parse, transform and serialize ``document``.  Content without any
        block markers (classic editor content) is returned unchanged.
        """
        if not has_blocks(document):
            return document
        nodes = self.transform_blocks(parse_blocks(document), ctx, escaped_code_units(document))
        return serialize_blocks(nodes)
