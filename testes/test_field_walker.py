import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from crosspost.fields import FieldTreeWalker
from crosspost.models import ABSENT


@pytest.fixture
def walker(registry, transformer):
    return FieldTreeWalker(registry, transformer)


def test_empty_scalar_becomes_absent(walker, ctx):
    flat_map = {"price": "", "_price": "field_123"}
    assert walker.walk(flat_map, 42, ctx) == {"price": ABSENT}


def test_gallery_ids_are_resolved(walker, ctx):
    flat_map = {"gallery": "[5,9]", "_gallery": "field_7"}
    assert walker.walk(flat_map, 42, ctx) == {"gallery": [105]}


def test_managed_keys_and_pointers_are_removed_from_meta(walker, ctx):
    flat_map = {
        "price": "10",
        "_price": "field_123",
        "_edit_lock": "1700000000:1",
        "legacy_counter": "7",
    }
    walker.walk(flat_map, 42, ctx)
    assert flat_map == {"_edit_lock": "1700000000:1", "legacy_counter": "7"}


def test_unmanaged_keys_are_not_in_the_output(walker, ctx):
    flat_map = {"legacy_counter": "7", "_legacy_counter": "field_unknown"}
    assert walker.walk(flat_map, 42, ctx) == {}
    assert flat_map == {"legacy_counter": "7", "_legacy_counter": "field_unknown"}


def test_pointer_falls_back_to_registry_by_name(walker, ctx):
    flat_map = {"cta": ""}
    assert walker.walk(flat_map, 42, ctx) == {"cta": {"title": "", "url": ""}}
    assert flat_map == {}


def test_nested_key_without_pointer_is_left_alone(walker, ctx):
    # no top-level field is named "seo_title"
    flat_map = {"seo_title": "x"}
    assert walker.walk(flat_map, 42, ctx) == {}
    assert flat_map == {"seo_title": "x"}


def test_repeater_rows_are_consumed(walker, ctx):
    flat_map = {
        "slides": "1",
        "_slides": "field_slides",
        "slides_0_title": "Hello",
        "_slides_0_title": "field_slide_title",
        "slides_0_image": "12",
        "_slides_0_image": "field_slide_image",
        "slides_0_buttons": "",
        "_slides_0_buttons": "field_slide_buttons",
    }
    out = walker.walk(flat_map, 42, ctx)
    assert out == {"slides": [{"title": "Hello", "image": 112, "buttons": None}]}
    assert flat_map == {}


def test_variant_group_keeps_layout_per_row(walker, ctx, remote):
    flat_map = {
        "sections": "2",
        "_sections": "field_sections",
        "sections_0_acf_fc_layout": "quote",
        "sections_0_quote": "Stay hungry",
        "_sections_0_quote": "field_quote",
        "sections_0_author": "8",
        "_sections_0_author": "field_quote_author",
        "sections_1_acf_fc_layout": "text",
        "sections_1_body": "<p>Body</p>",
        "_sections_1_body": "field_body",
    }
    out = walker.walk(flat_map, 42, ctx)
    assert out["sections"] == [
        {"acf_fc_layout": "quote", "quote": "Stay hungry", "author": 2008},
        {"acf_fc_layout": "text", "body": "<p>Body</p>"},
    ]
    # layout markers have no declaration and are left in the meta
    assert set(flat_map) == {"sections_0_acf_fc_layout", "sections_1_acf_fc_layout"}


def test_term_pointer_lookup_uses_acf_term_id(registry, transformer, destination):
    from crosspost.models import ObjectKind, ResolutionContext

    registry.add_object_pointer("term_5", "headline", "field_1")
    term_ctx = ResolutionContext(destination=destination, source_object_id=5, object_kind=ObjectKind.TERM)
    walker = FieldTreeWalker(registry, transformer)
    assert walker.walk({"headline": "Hi"}, 5, term_ctx) == {"title": "Hi"}


def test_serialized_link_is_decoded_with_its_keys(walker, ctx):
    flat_map = {
        "cta": 'a:3:{s:5:"title";s:4:"Home";s:3:"url";s:14:"https://x.test";s:6:"target";s:0:"";}',
        "_cta": "field_link",
    }
    out = walker.walk(flat_map, 42, ctx)
    assert out["cta"]["url"] == "https://x.test"
    assert out["cta"]["title"] == "Home"
