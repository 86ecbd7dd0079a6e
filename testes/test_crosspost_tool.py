import copy
import json
import os
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from crosspost.crosspost_tool import BLOCKS_PRIORITY, FIELDS_PRIORITY, POST_FILTER, CrosspostTool
from crosspost.hooks import FilterRegistry
from crosspost.models import ObjectKind

HERO = '<!-- wp:acf/hero {"data":{"title":"Hi","_title":"field_1","image":5,"_image":"field_hero_image"}} /-->'


@pytest.fixture
def tool(registry, resolver, tmp_path):
    config = {
        "crosspost": {
            "field_groups_file": None,
            "mapping_file": str(tmp_path / "missing_map.json"),
            "output_dir": str(tmp_path / "out"),
            "records_dir": str(tmp_path / "records"),
            "log_file": None,
        }
    }
    return CrosspostTool(config, registry=registry, resolver=resolver)


def _post():
    return {
        "id": 42,
        "slug": "landing",
        "content": "<p>intro</p>\n" + HERO,
        "meta": {
            "price": "",
            "_price": "field_123",
            "gallery": "[5,9]",
            "_gallery": "field_7",
            "_edit_lock": "1700000000:1",
        },
    }


def test_post_meta_moves_to_acf_and_blocks_are_processed(tool, destination):
    data = tool.process_post(_post(), destination)
    assert data["acf"] == {"price": None, "gallery": [105]}
    assert data["meta"] == {"_edit_lock": "1700000000:1"}
    assert data["content"].startswith("<p>intro</p>\n<!-- wp:acf/hero ")
    assert '"image":105' in data["content"]
    assert '"title":"Hi","_title":"field_1"' in data["content"]


def test_existing_acf_values_are_kept(tool, destination):
    post = _post()
    post["acf"] = {"legacy": 1}
    data = tool.process_post(post, destination)
    assert data["acf"]["legacy"] == 1
    assert data["acf"]["gallery"] == [105]


def test_edit_context_content_is_processed(tool, destination):
    post = _post()
    post["content"] = {"raw": HERO, "rendered": "<section>Hi</section>"}
    data = tool.process_post(post, destination)
    assert '"image":105' in data["content"]["raw"]
    assert data["content"]["rendered"] == "<section>Hi</section>"


def test_record_without_id_is_left_alone(tool, destination):
    post = _post()
    del post["id"]
    expected = copy.deepcopy(post)
    assert tool.process_post(post, destination) == expected


def test_product_meta_data_list(tool, destination):
    product = {
        "id": 30,
        "meta_data": [
            {"id": 1, "key": "price", "value": "19.90"},
            {"id": 2, "key": "_price", "value": "field_123"},
            {"id": 3, "key": "_stock_note", "value": "back soon"},
        ],
        "description": {"raw": HERO, "rendered": ""},
        "short_description": "<p>No blocks here</p>",
    }
    data = tool.process_product(product, destination)
    assert data["acf"] == {"price": "19.90"}
    assert data["meta_data"] == [{"id": 3, "key": "_stock_note", "value": "back soon"}]
    assert '"image":105' in data["description"]["raw"]
    assert data["short_description"] == "<p>No blocks here</p>"


def test_term_fields_use_term_object_id(tool, registry, destination):
    registry.add_object_pointer("term_5", "headline", "field_1")
    term = {"id": 5, "slug": "news", "meta": {"headline": "Latest"}, "description": HERO}
    data = tool.transform_record(term, destination, ObjectKind.TERM)
    assert data["acf"] == {"title": "Latest"}
    assert data["meta"] == {}
    assert '"image":105' in data["description"]


def test_fields_run_before_blocks(tool, destination):
    seen = {}

    def between(data, destination_arg):
        seen["acf"] = dict(data.get("acf") or {})
        seen["content"] = data["content"]
        return data

    tool.filters.add_filter(POST_FILTER, between, FIELDS_PRIORITY + 1, 2)
    data = tool.process_post(_post(), destination)
    assert seen["acf"] == {"price": None, "gallery": [105]}
    assert '"image":5' in seen["content"]
    assert '"image":105' in data["content"]


def test_run_writes_one_file_per_record_and_destination(tool, destination, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    post = _post()
    records = [{"kind": "post", "data": post}, {"kind": "comment", "data": {"id": 7}}]
    written = tool.run(records, [destination])

    assert len(written) == 1
    path = written[0]["path"]
    assert path == os.path.join(str(tmp_path / "out"), "dest.example.com", "post-42.json")
    with open(path, "r", encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["acf"]["gallery"] == [105]
    # input records are not modified
    assert post["meta"]["_gallery"] == "field_7"

    with open(os.path.join("reports", "crosspost", "errors.jsonl"), "r", encoding="utf-8") as f:
        errors = [json.loads(line) for line in f]
    assert errors[0]["code"] == "RECORD_FAILED"
    assert errors[0]["id"] == 7


def test_load_records_plain_and_envelopes(tool, tmp_path):
    records_dir = tmp_path / "records"
    records_dir.mkdir()
    (records_dir / "a.json").write_text(json.dumps({"id": 1}), encoding="utf-8")
    (records_dir / "b.json").write_text(
        json.dumps([{"kind": "product", "data": {"id": 2}}, {"kind": "term", "data": {"id": 3}}]),
        encoding="utf-8",
    )
    (records_dir / "c.json").write_text("not json", encoding="utf-8")

    records = tool.load_records()
    assert records == [
        {"kind": "post", "data": {"id": 1}},
        {"kind": "product", "data": {"id": 2}},
        {"kind": "term", "data": {"id": 3}},
    ]


class TestFilterRegistry(unittest.TestCase):

    def test_priority_then_insertion_order(self):
        """Verifica se os filtros rodam por prioridade e depois por ordem de registro."""
        filters = FilterRegistry()
        filters.add_filter("tag", lambda v: v + ["late"], 30)
        filters.add_filter("tag", lambda v: v + ["first"], 10)
        filters.add_filter("tag", lambda v: v + ["second"], 10)
        self.assertEqual(filters.apply_filters("tag", []), ["first", "second", "late"])

    def test_accepted_args_limits_extra_arguments(self):
        """Verifica se o callback recebe apenas o número de argumentos declarado."""
        filters = FilterRegistry()
        filters.add_filter("tag", lambda v: v + 1, 10, 1)
        filters.add_filter("tag", lambda v, extra: v + extra, 20, 2)
        self.assertEqual(filters.apply_filters("tag", 1, 10, "ignored"), 12)

    def test_remove_filter(self):
        """Verifica se um filtro removido deixa de ser aplicado."""
        filters = FilterRegistry()

        def double(v):
            return v * 2

        filters.add_filter("tag", double)
        self.assertTrue(filters.has_filter("tag"))
        self.assertTrue(filters.remove_filter("tag", double))
        self.assertFalse(filters.has_filter("tag"))
        self.assertEqual(filters.apply_filters("tag", 3), 3)

    def test_tool_registers_fields_and_blocks_filters(self):
        """Verifica se a ferramenta registra os filtros nas prioridades 25 e 30."""
        with tempfile.TemporaryDirectory() as tmp:
            config = {"crosspost": {"field_groups_file": None, "mapping_file": os.path.join(tmp, "map.json")}}
            tool = CrosspostTool(config)
            entries = tool.filters._filters[POST_FILTER]
            self.assertEqual([entry[0] for entry in entries], [FIELDS_PRIORITY, BLOCKS_PRIORITY])
            self.assertEqual(entries[0][2], tool.process_fields)
            self.assertEqual(entries[1][2], tool.process_acf_blocks)
            self.assertEqual(tool.destinations, [])


if __name__ == '__main__':
    unittest.main()
