"""
Identifier resolution between the source and a destination site.

Attachments and posts are looked up in the mapping table kept by whoever
delivers them.  Terms and users have no such table: their slug is read from
the source site and searched on the destination.  Relationship targets of a
post type with a registered subtype resolver (WooCommerce products) are
handed to that resolver instead of the generic post table.

A miss is ``None``, never an exception; callers decide what "empty" means
for their field kind.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from crosspost.destinations import rest_client
from crosspost.models import Destination, EntityReference
from crosspost.utils.errors import log_message

from .mapping import MappingTable
from .source import SourceDirectory, taxonomy_rest_base

# (source media id, destination) -> {"id": destination media id} or {}
MediaCrossposter = Callable[[int, Destination], Dict[str, Any]]
# (entity, destination) -> destination id or None
SubtypeResolver = Callable[[EntityReference, Destination], Optional[int]]


class ResolutionKind(str, Enum):
    MEDIA = "media"
    ENTITY = "entity"
    TAXONOMY = "taxonomy"
    USER = "user"
    CROSS_TYPE_ENTITY = "cross_type_entity"


def _as_id(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class IdentifierResolver:
    def __init__(
        self,
        mapping: Optional[MappingTable] = None,
        source: Optional[SourceDirectory] = None,
        *,
        media_crossposter: Optional[MediaCrossposter] = None,
        subtype_resolvers: Optional[Dict[str, SubtypeResolver]] = None,
    ) -> None:
        self.mapping = mapping or MappingTable()
        self.source = source or SourceDirectory()
        self.media_crossposter = media_crossposter
        self.subtype_resolvers: Dict[str, SubtypeResolver] = {"product": self._resolve_product}
        self.subtype_resolvers.update(subtype_resolvers or {})

    # ------------------------------------------------------------------ #
    # single identifiers
    # ------------------------------------------------------------------ #

    def resolve(
        self,
        kind: ResolutionKind,
        source_id: Any,
        destination: Destination,
        *,
        taxonomy: Optional[str] = None,
    ) -> Optional[int]:
        if kind == ResolutionKind.MEDIA:
            return self.resolve_media(source_id, destination)
        if kind == ResolutionKind.ENTITY:
            return self.resolve_entity(source_id, destination)
        if kind == ResolutionKind.CROSS_TYPE_ENTITY:
            return self.resolve_reference(self.entity_reference(source_id), destination)
        if kind == ResolutionKind.TAXONOMY:
            found = self.resolve_terms([source_id], destination, taxonomy)
            return found[0] if found else None
        if kind == ResolutionKind.USER:
            found = self.resolve_users([source_id], destination)
            return found[0] if found else None
        raise ValueError(f"Unknown resolution kind: {kind}")

    def resolve_media(self, source_id: Any, destination: Destination) -> Optional[int]:
        media_id = _as_id(source_id)
        if media_id is None:
            return None
        found = self.mapping.lookup("attachment", media_id, destination.blog_id)
        if found:
            return found
        if self.media_crossposter is not None:
            crossposted = self.media_crossposter(media_id, destination) or {}
            found = _as_id(crossposted.get("id"))
        if not found:
            log_message(f"Attachment {media_id} has no counterpart on {destination.blog_id}", level="DEBUG")
        return found

    def resolve_entity(self, source_id: Any, destination: Destination) -> Optional[int]:
        post_id = _as_id(source_id)
        if post_id is None:
            return None
        return self.mapping.lookup("post", post_id, destination.blog_id)

    def entity_reference(self, source_id: Any) -> Optional[EntityReference]:
        post_id = _as_id(source_id)
        if post_id is None:
            return None
        return EntityReference(id=post_id, subtype=self.source.post_type(post_id))

    def resolve_reference(self, ref: Optional[EntityReference], destination: Destination) -> Optional[int]:
        """Resolve a relationship target, delegating to its subtype resolver when one is registered."""
        if ref is None:
            return None
        resolver = self.subtype_resolvers.get(ref.subtype or "")
        if resolver is not None:
            return _as_id(resolver(ref, destination))
        return self.resolve_entity(ref.id, destination)

    def _resolve_product(self, ref: EntityReference, destination: Destination) -> Optional[int]:
        return self.mapping.lookup("product", ref.id, destination.blog_id)

    # ------------------------------------------------------------------ #
    # natural keys
    # ------------------------------------------------------------------ #

    def _resolve_by_slug(
        self,
        ids: Iterable[Any],
        slug_of: Callable[[int], Optional[str]],
        destination: Destination,
        collection: str,
    ) -> List[int]:
        slugs: List[str] = []
        for raw in ids:
            source_id = _as_id(raw)
            slug = slug_of(source_id) if source_id is not None else None
            if slug:
                slugs.append(slug)
        if not slugs:
            return []
        by_slug = {obj["slug"]: obj["id"] for obj in rest_client.remote_find(destination, collection, slugs)}
        resolved: List[int] = []
        for slug in slugs:
            found = by_slug.get(slug)
            if found and found not in resolved:
                resolved.append(found)
            elif not found:
                log_message(f"No {collection} with slug '{slug}' on {destination.blog_id}", level="DEBUG")
        return resolved

    def resolve_terms(self, term_ids: Iterable[Any], destination: Destination, taxonomy: Optional[str] = None) -> List[int]:
        return self._resolve_by_slug(
            term_ids,
            lambda term_id: self.source.term_slug(term_id, taxonomy),
            destination,
            taxonomy_rest_base(taxonomy),
        )

    def resolve_users(self, user_ids: Iterable[Any], destination: Destination) -> List[int]:
        return self._resolve_by_slug(user_ids, self.source.user_slug, destination, "users")
