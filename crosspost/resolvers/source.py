"""
Lookups against the source site.

Terms and users cannot be matched across sites by numeric id, so we read
their natural keys (term slug, user slug) from the source and search for
them on the destination.  Relationship targets need their post type to
decide whether a subtype resolver (catalog items) applies.

:class:`SourceDirectory` answers from dictionaries (handy for exports and
tests); :class:`RestSourceDirectory` asks the source site's REST API.
"""

from __future__ import annotations

from typing import Dict, Optional

import requests

from crosspost.destinations.rest_client import get_json
from crosspost.models import Destination
from crosspost.utils.errors import log_message

_TAXONOMY_REST_BASES = {
    "category": "categories",
    "post_tag": "tags",
    "product_cat": "product_cat",
    "product_tag": "product_tag",
}


def taxonomy_rest_base(taxonomy: Optional[str]) -> str:
    """Map a taxonomy name to its ``wp/v2`` collection."""
    taxonomy = taxonomy or "category"
    return _TAXONOMY_REST_BASES.get(taxonomy, taxonomy)


class SourceDirectory:
    def __init__(
        self,
        *,
        term_slugs: Optional[Dict[int, str]] = None,
        user_slugs: Optional[Dict[int, str]] = None,
        post_types: Optional[Dict[int, str]] = None,
    ) -> None:
        self.term_slugs = {int(k): v for k, v in (term_slugs or {}).items()}
        self.user_slugs = {int(k): v for k, v in (user_slugs or {}).items()}
        self.post_types = {int(k): v for k, v in (post_types or {}).items()}

    def term_slug(self, term_id: int, taxonomy: Optional[str] = None) -> Optional[str]:
        return self.term_slugs.get(int(term_id))

    def user_slug(self, user_id: int) -> Optional[str]:
        return self.user_slugs.get(int(user_id))

    def post_type(self, post_id: int) -> Optional[str]:
        return self.post_types.get(int(post_id))


class RestSourceDirectory(SourceDirectory):
    """
    Reads natural keys from the source site over REST, remembering answers
    for the lifetime of the instance (one run).
    """

    def __init__(self, source: Destination) -> None:
        super().__init__()
        self.source = source

    def _fetch(self, route: str, params: Optional[Dict[str, str]] = None):
        try:
            return get_json(self.source, route, params)
        except (requests.RequestException, ValueError) as e:
            log_message(f"Source lookup {route} failed: {e}", level="WARNING")
            return None

    def term_slug(self, term_id: int, taxonomy: Optional[str] = None) -> Optional[str]:
        term_id = int(term_id)
        if term_id not in self.term_slugs:
            obj = self._fetch(f"wp/v2/{taxonomy_rest_base(taxonomy)}/{term_id}", {"_fields": "slug"})
            if isinstance(obj, dict) and obj.get("slug"):
                self.term_slugs[term_id] = obj["slug"]
        return self.term_slugs.get(term_id)

    def user_slug(self, user_id: int) -> Optional[str]:
        user_id = int(user_id)
        if user_id not in self.user_slugs:
            obj = self._fetch(f"wp/v2/users/{user_id}", {"_fields": "slug"})
            if isinstance(obj, dict) and obj.get("slug"):
                self.user_slugs[user_id] = obj["slug"]
        return self.user_slugs.get(user_id)

    def post_type(self, post_id: int) -> Optional[str]:
        post_id = int(post_id)
        if post_id not in self.post_types:
            found = self._fetch("wp/v2/search", {"include": str(post_id), "type": "post", "_fields": "id,subtype"})
            if isinstance(found, list):
                for obj in found:
                    if isinstance(obj, dict) and int(obj.get("id") or 0) == post_id and obj.get("subtype"):
                        self.post_types[post_id] = obj["subtype"]
        return self.post_types.get(post_id)
