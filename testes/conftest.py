import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from crosspost.destinations import rest_client
from crosspost.fields import AcfExportRegistry, FieldValueTransformer
from crosspost.models import Destination, ResolutionContext
from crosspost.resolvers import IdentifierResolver, MappingTable, SourceDirectory

BLOG = "dest.example.com"

FIELD_GROUPS = [
    {
        "key": "group_test",
        "fields": [
            {"key": "field_123", "name": "price", "type": "number"},
            {"key": "field_link", "name": "cta", "type": "link"},
            {"key": "field_7", "name": "gallery", "type": "gallery"},
            {"key": "field_cover", "name": "cover", "type": "image"},
            {"key": "field_related", "name": "related", "type": "relationship"},
            {"key": "field_topics", "name": "topics", "type": "taxonomy", "taxonomy": "category"},
            {"key": "field_editor", "name": "editor", "type": "user"},
            {"key": "field_flag", "name": "flag", "type": "true_false"},
            {
                "key": "field_slides",
                "name": "slides",
                "type": "repeater",
                "sub_fields": [
                    {"key": "field_slide_title", "name": "title", "type": "text"},
                    {"key": "field_slide_image", "name": "image", "type": "image"},
                    {
                        "key": "field_slide_buttons",
                        "name": "buttons",
                        "type": "repeater",
                        "sub_fields": [
                            {"key": "field_button_label", "name": "label", "type": "text"},
                        ],
                    },
                ],
            },
            {
                "key": "field_sections",
                "name": "sections",
                "type": "flexible_content",
                "layouts": {
                    "layout_text": {
                        "key": "layout_text",
                        "name": "text",
                        "sub_fields": [{"key": "field_body", "name": "body", "type": "wysiwyg"}],
                    },
                    "layout_quote": {
                        "key": "layout_quote",
                        "name": "quote",
                        "sub_fields": [
                            {"key": "field_quote", "name": "quote", "type": "textarea"},
                            {"key": "field_quote_author", "name": "author", "type": "user"},
                        ],
                    },
                },
            },
            {
                "key": "field_seo",
                "name": "seo",
                "type": "group",
                "sub_fields": [
                    {"key": "field_seo_title", "name": "title", "type": "text"},
                    {"key": "field_seo_image", "name": "image", "type": "image"},
                ],
            },
        ],
    },
    {
        "key": "group_hero",
        "fields": [
            {"key": "field_1", "name": "title", "type": "text"},
            {"key": "field_hero_image", "name": "image", "type": "image"},
            {"key": "field_hero_intro", "name": "intro", "type": "textarea"},
        ],
    },
]


@pytest.fixture
def destination():
    return Destination(url="https://dest.example.com/", login="bot", password="app pass")


@pytest.fixture
def ctx(destination):
    return ResolutionContext(destination=destination, source_object_id=42)


@pytest.fixture
def registry():
    return AcfExportRegistry(FIELD_GROUPS)


@pytest.fixture
def mapping():
    table = MappingTable()
    table.record("attachment", 5, BLOG, 105)
    table.record("attachment", 11, BLOG, 111)
    table.record("attachment", 12, BLOG, 112)
    table.record("post", 20, BLOG, 220)
    table.record("post", 21, BLOG, 221)
    table.record("product", 30, BLOG, 330)
    return table


@pytest.fixture
def source():
    return SourceDirectory(
        term_slugs={3: "news", 4: "events", 6: "gone"},
        user_slugs={8: "alice", 9: "bob"},
        post_types={20: "post", 21: "page", 30: "product", 31: "product"},
    )


@pytest.fixture
def remote(monkeypatch):
    """Replace the destination lookup with an in-memory one and record calls."""
    found = {
        "categories": {"news": 1003, "events": 1004},
        "users": {"alice": 2008},
    }
    calls = []

    def fake_remote_find(destination, collection, slugs, page_size=rest_client.PAGE_SIZE):
        slugs = list(slugs)
        calls.append((collection, slugs))
        table = found.get(collection, {})
        return [{"id": table[s], "slug": s} for s in slugs if s in table]

    monkeypatch.setattr(rest_client, "remote_find", fake_remote_find)
    return calls


@pytest.fixture
def resolver(mapping, source, remote):
    return IdentifierResolver(mapping, source)


@pytest.fixture
def transformer(resolver):
    return FieldValueTransformer(resolver)
