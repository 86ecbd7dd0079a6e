from __future__ import annotations

from typing import Any, Dict, List, Optional

from crosspost.models import FieldDeclaration, FieldPointer, ResolutionContext
from crosspost.utils.errors import log_message

from .registry import DeclarationCache, FieldRegistry
from .transformer import FieldValueTransformer


class FieldTreeWalker:
    """
    Turns a record's flat meta map into ACF values keyed by field name.

    Every key that has a declaration pointer (``_price`` next to ``price``)
    resolving to a top-level declaration is transformed.  Keys whose
    declaration belongs to a repeater, flexible content or group are row
    data already consumed by their parent.  Both kinds are removed from the
    flat map together with their pointers, once every read is done; all
    other meta entries stay where they are.
    """

    def __init__(self, registry: FieldRegistry, transformer: FieldValueTransformer) -> None:
        self.registry = registry
        self.transformer = transformer

    def _declaration_for(
        self,
        pointer: FieldPointer,
        declarations: DeclarationCache,
        ctx: ResolutionContext,
    ) -> Optional[FieldDeclaration]:
        ref = pointer.declaration_ref or declarations.pointer(ctx.acf_object_id, pointer.meta_key)
        return declarations.get(ref)

    def walk(self, flat_map: Dict[str, Any], source_object_id: int, ctx: ResolutionContext) -> Dict[str, Any]:
        declarations = DeclarationCache(self.registry)
        transformed: Dict[str, Any] = {}
        consumed: List[str] = []

        for meta_key in list(flat_map.keys()):
            if meta_key.startswith("_"):
                continue
            pointer = FieldPointer.from_flat_map(flat_map, meta_key)
            declaration = self._declaration_for(pointer, declarations, ctx)
            if declaration is None:
                log_message(f"Meta key '{meta_key}' is not an ACF field, leaving it as is", level="DEBUG")
                continue
            consumed.append(meta_key)
            if not declaration.is_top_level:
                continue
            transformed[declaration.name] = self.transformer.transform(
                pointer.value,
                declaration,
                source_object_id,
                ctx,
                flat_map=flat_map,
                path=[],
                key=meta_key,
            )

        for meta_key in consumed:
            flat_map.pop(meta_key, None)
            flat_map.pop(f"_{meta_key}", None)
        return transformed
