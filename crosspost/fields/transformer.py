"""
Per-kind transformation of a single ACF field value.

The destination's REST API is strict about what "no value" looks like, so
each kind has its own empty policy:

========== ===================================================================
Kind       Empty / unresolved result
========== ===================================================================
scalar     ``None`` for ``""`` (an empty string is rejected, null is not)
link       ``{"title": "", "url": ""}`` (null links are rejected)
media      ``None`` for a single id, ``0`` inside a composite, ``[]`` for lists
entity     ``0`` (passes the destination's "required" check)
taxonomy   ``0``
user       ``[]``
repeater   ``None`` when there are no rows
flexible   ``None`` when there are no rows
========== ===================================================================

Composite values are not read from their own meta entry.  WordPress stores
every row as separate flat keys (``items_0_title``, ``items_1_title``) next
to a counter (``items``), so rows are rebuilt from the record's flat map
using a path accumulator that the whole recursion shares.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from crosspost.models import ABSENT, FieldDeclaration, FieldKind, ResolutionContext
from crosspost.resolvers import IdentifierResolver
from crosspost.utils.errors import log_message

from .values import is_empty, maybe_unserialize, row_count, to_list

LINK_PLACEHOLDER = {"title": "", "url": ""}
FLEXIBLE_LAYOUT_KEY = "acf_fc_layout"


def _path_key(path: List[str], *tail: str) -> str:
    return "_".join(list(path) + list(tail))


class FieldValueTransformer:
    def __init__(self, resolver: IdentifierResolver) -> None:
        self.resolver = resolver
        self._handlers: Dict[FieldKind, Callable[..., Any]] = {
            FieldKind.SCALAR: self._scalar,
            FieldKind.LINK: self._link,
            FieldKind.MEDIA: self._media,
            FieldKind.ENTITY: self._entity,
            FieldKind.TAXONOMY: self._taxonomy,
            FieldKind.USER: self._user,
            FieldKind.REPEATER: self._repeater,
            FieldKind.FLEXIBLE: self._flexible,
            FieldKind.GROUP: self._group,
        }

    def transform(
        self,
        value: Any,
        declaration: FieldDeclaration,
        source_object_id: int,
        ctx: ResolutionContext,
        *,
        flat_map: Optional[Dict[str, Any]] = None,
        path: Optional[List[str]] = None,
        key: Optional[str] = None,
        is_subfield: bool = False,
    ) -> Any:
        """
        Return the destination-ready form of ``value``.

        :param flat_map: The record's flat meta (or block data) map, read for
            composite rows and counters.
        :param path: Shared path accumulator.  ``key`` (or the declaration
            name) is pushed for the duration of the call.
        :param key: The flat-map key ``value`` came from, when it differs
            from the declaration name (nested keys such as ``items_0_inner``).
        :param is_subfield: ``True`` when transforming a cell of a composite row.
        """
        handler = self._handlers.get(declaration.kind)
        if handler is None:
            return value
        if path is None:
            path = []
        path.append(key or declaration.name)
        try:
            return handler(
                value,
                declaration,
                source_object_id=source_object_id,
                ctx=ctx,
                flat_map=flat_map if flat_map is not None else {},
                path=path,
                is_subfield=is_subfield,
            )
        finally:
            path.pop()

    # ------------------------------------------------------------------ #
    # leaves
    # ------------------------------------------------------------------ #

    def _scalar(self, value: Any, declaration: FieldDeclaration, **_: Any) -> Any:
        if value is None or value == "":
            return ABSENT
        return value

    def _link(self, value: Any, declaration: FieldDeclaration, **_: Any) -> Any:
        value = maybe_unserialize(value)
        if is_empty(value):
            return dict(LINK_PLACEHOLDER)
        if isinstance(value, dict):
            return {**LINK_PLACEHOLDER, **value}
        if isinstance(value, (list, tuple)):
            log_message(f"Field '{declaration.name}': link value without title/url keys, left empty", level="WARNING")
            return dict(LINK_PLACEHOLDER)
        # a bare URL
        return {**LINK_PLACEHOLDER, "url": str(value)}

    def _media(self, value: Any, declaration: FieldDeclaration, *, ctx: ResolutionContext, is_subfield: bool, **_: Any) -> Any:
        ids, was_scalar = to_list(value)
        resolved = []
        for media_id in ids:
            found = self.resolver.resolve_media(media_id, ctx.destination)
            if found:
                resolved.append(found)
            else:
                log_message(f"Field '{declaration.name}': attachment {media_id} not resolved", level="DEBUG")
        if was_scalar:
            if resolved:
                return resolved[0]
            # composite rows cannot store a null leaf
            return 0 if is_subfield else ABSENT
        return resolved

    def _entity(self, value: Any, declaration: FieldDeclaration, *, ctx: ResolutionContext, **_: Any) -> Any:
        ids, was_scalar = to_list(value)
        resolved = []
        for post_id in ids:
            found = self.resolver.resolve_reference(self.resolver.entity_reference(post_id), ctx.destination)
            if found:
                resolved.append(found)
            else:
                log_message(f"Field '{declaration.name}': post {post_id} not crossposted yet", level="DEBUG")
        if not resolved:
            return 0
        return resolved[0] if was_scalar else resolved

    def _taxonomy(self, value: Any, declaration: FieldDeclaration, *, ctx: ResolutionContext, **_: Any) -> Any:
        ids, was_scalar = to_list(value)
        resolved = self.resolver.resolve_terms(ids, ctx.destination, declaration.taxonomy) if ids else []
        if not resolved:
            return 0
        return resolved[0] if was_scalar else resolved

    def _user(self, value: Any, declaration: FieldDeclaration, *, ctx: ResolutionContext, **_: Any) -> Any:
        ids, was_scalar = to_list(value)
        resolved = self.resolver.resolve_users(ids, ctx.destination) if ids else []
        if not resolved:
            return []
        return resolved[0] if was_scalar else resolved

    # ------------------------------------------------------------------ #
    # composites
    # ------------------------------------------------------------------ #

    def _row(
        self,
        sub_fields: List[FieldDeclaration],
        *,
        source_object_id: int,
        ctx: ResolutionContext,
        flat_map: Dict[str, Any],
        path: List[str],
        **_: Any,
    ) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for sub in sub_fields:
            raw = flat_map.get(_path_key(path, sub.name))
            row[sub.name] = self.transform(
                raw,
                sub,
                source_object_id,
                ctx,
                flat_map=flat_map,
                path=path,
                is_subfield=True,
            )
        return row

    def _repeater(self, value: Any, declaration: FieldDeclaration, *, flat_map: Dict[str, Any], path: List[str], **kwargs: Any) -> Any:
        count, _ = row_count(flat_map.get(_path_key(path)))
        if not count:
            return None
        rows = []
        for index in range(count):
            path.append(str(index))
            try:
                rows.append(self._row(declaration.sub_fields, flat_map=flat_map, path=path, **kwargs))
            finally:
                path.pop()
        return rows

    def _flexible(self, value: Any, declaration: FieldDeclaration, *, flat_map: Dict[str, Any], path: List[str], **kwargs: Any) -> Any:
        count, layout_names = row_count(flat_map.get(_path_key(path)))
        if not count:
            return None
        rows = []
        for index in range(count):
            path.append(str(index))
            try:
                if index < len(layout_names):
                    layout = layout_names[index]
                else:
                    layout = str(flat_map.get(_path_key(path, FLEXIBLE_LAYOUT_KEY)) or "")
                sub_fields = declaration.layouts.get(layout)
                if sub_fields is None:
                    log_message(f"Field '{declaration.name}': unknown layout '{layout}' in row {index}", level="WARNING")
                    sub_fields = []
                row = {FLEXIBLE_LAYOUT_KEY: layout}
                row.update(self._row(sub_fields, flat_map=flat_map, path=path, **kwargs))
                rows.append(row)
            finally:
                path.pop()
        return rows

    def _group(self, value: Any, declaration: FieldDeclaration, *, flat_map: Dict[str, Any], path: List[str], **kwargs: Any) -> Any:
        return self._row(declaration.sub_fields, flat_map=flat_map, path=path, **kwargs)
