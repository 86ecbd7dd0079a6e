"""
High-level orchestration of ACF-aware cross-posting.

This module defines a :class:`CrosspostTool` class that ties the field
registry, identifier resolver, field walker and block processor together
and registers them as filters on the record preparation pipeline:

==============================  ==========  ==================================
Filter tag                      Priority    Callback
==============================  ==========  ==================================
``pre_crosspost_post_data``     25 / 30     ACF meta fields / ACF blocks
``pre_crosspost_product_data``  25 / 30     WooCommerce ``meta_data`` / blocks
``pre_crosspost_term_data``     25 / 30     term meta / description blocks
==============================  ==========  ==================================

Every callback takes ``(data, destination)`` and returns ``data``.  The
block processor also applies ``pre_crosspost_acf_block_value`` to each
transformed block field value, so callers can adjust values per destination.

Configuration is supplied via a JSON file path or directly as a dictionary.
The ``source`` section describes the site records come from, the
``destinations`` list the sites they go to, and the ``crosspost`` section
points at the ACF field group export and the id mapping table.
"""

from __future__ import annotations

import copy
import glob
import json
import os
from typing import Any, Dict, Iterable, List, Optional

from crosspost.blocks import BlockContentProcessor, has_blocks
from crosspost.destinations.rest_client import set_rate_limit
from crosspost.fields import AcfExportRegistry, FieldRegistry, FieldTreeWalker, FieldValueTransformer
from crosspost.models import Destination, ObjectKind, ResolutionContext
from crosspost.resolvers import IdentifierResolver, MappingTable, RestSourceDirectory, SourceDirectory
from crosspost.hooks import FilterRegistry
from crosspost.utils.errors import configure_log_file, log_message, report_error, report_ok

POST_FILTER = "pre_crosspost_post_data"
PRODUCT_FILTER = "pre_crosspost_product_data"
TERM_FILTER = "pre_crosspost_term_data"

FIELDS_PRIORITY = 25
BLOCKS_PRIORITY = 30

_FILTERS = {
    ObjectKind.POST: POST_FILTER,
    ObjectKind.PRODUCT: PRODUCT_FILTER,
    ObjectKind.TERM: TERM_FILTER,
}


def default_config() -> Dict[str, Any]:
    return {
        "source": {},
        "destinations": [],
        "crosspost": {},
    }


class CrosspostTool:
    """
    Holds the collaborators for one configuration and exposes one entry
    point per record kind.  Nothing is kept between records apart from the
    collaborators themselves; every call builds its own declaration cache
    and path accumulator.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        registry: Optional[FieldRegistry] = None,
        resolver: Optional[IdentifierResolver] = None,
        filters: Optional[FilterRegistry] = None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = default_config()

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("source", {})
        config["source"].setdefault("url", os.getenv("CROSSPOST_SOURCE_URL", ""))
        config["source"].setdefault("login", os.getenv("CROSSPOST_SOURCE_LOGIN", ""))
        config["source"].setdefault("password", os.getenv("CROSSPOST_SOURCE_PASSWORD", ""))
        config.setdefault("destinations", [])

        config.setdefault("crosspost", {})
        config["crosspost"].setdefault("field_groups_file", "config/acf-export.json")
        config["crosspost"].setdefault("mapping_file", "reports/crosspost_map.json")
        config["crosspost"].setdefault("rate_limit_rpm", 180)
        config["crosspost"].setdefault("log_file", None)
        config["crosspost"].setdefault("records_dir", "docs/")
        config["crosspost"].setdefault("output_dir", "reports/crosspost")
        config["crosspost"].setdefault("debug", False)

        self.config = config
        settings = config["crosspost"]
        configure_log_file(settings["log_file"], debug=bool(settings["debug"]))
        set_rate_limit(int(settings["rate_limit_rpm"]))

        if registry is None:
            registry = AcfExportRegistry.from_path(settings["field_groups_file"])
        if resolver is None:
            source: SourceDirectory
            if config["source"]["url"]:
                source = RestSourceDirectory(Destination(**config["source"]))
            else:
                source = SourceDirectory()
            resolver = IdentifierResolver(MappingTable.load(settings["mapping_file"]), source)

        self.registry = registry
        self.resolver = resolver
        self.transformer = FieldValueTransformer(resolver)
        self.walker = FieldTreeWalker(registry, self.transformer)
        self.filters = filters or FilterRegistry()
        self.blocks = BlockContentProcessor(registry, self.transformer, self.filters)

        self.filters.add_filter(POST_FILTER, self.process_fields, FIELDS_PRIORITY, 2)
        self.filters.add_filter(POST_FILTER, self.process_acf_blocks, BLOCKS_PRIORITY, 2)
        self.filters.add_filter(PRODUCT_FILTER, self.process_product_fields, FIELDS_PRIORITY, 2)
        self.filters.add_filter(PRODUCT_FILTER, self.process_product_blocks, BLOCKS_PRIORITY, 2)
        self.filters.add_filter(TERM_FILTER, self.process_term_fields, FIELDS_PRIORITY, 2)
        self.filters.add_filter(TERM_FILTER, self.process_term_blocks, BLOCKS_PRIORITY, 2)

    @property
    def destinations(self) -> List[Destination]:
        return [Destination(**d) for d in self.config.get("destinations", []) if d.get("url")]

    # ------------------------------------------------------------------ #
    # entry points
    # ------------------------------------------------------------------ #

    def process_post(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self.filters.apply_filters(POST_FILTER, data, destination)

    def process_product(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self.filters.apply_filters(PRODUCT_FILTER, data, destination)

    def process_term(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self.filters.apply_filters(TERM_FILTER, data, destination)

    def transform_record(self, data: Dict[str, Any], destination: Destination, kind: ObjectKind = ObjectKind.POST) -> Dict[str, Any]:
        return self.filters.apply_filters(_FILTERS[ObjectKind(kind)], data, destination)

    # ------------------------------------------------------------------ #
    # filter callbacks
    # ------------------------------------------------------------------ #

    @staticmethod
    def _context(data: Dict[str, Any], destination: Destination, kind: ObjectKind) -> Optional[ResolutionContext]:
        try:
            object_id = int(data.get("id") or 0)
        except (TypeError, ValueError):
            object_id = 0
        if not object_id:
            return None
        return ResolutionContext(destination=destination, source_object_id=object_id, object_kind=kind)

    def _walk_meta(self, data: Dict[str, Any], destination: Destination, kind: ObjectKind) -> Dict[str, Any]:
        if not isinstance(data.get("meta"), dict):
            return data
        ctx = self._context(data, destination, kind)
        if ctx is None:
            return data
        acf = self.walker.walk(data["meta"], ctx.source_object_id, ctx)
        if acf:
            if not isinstance(data.get("acf"), dict):
                data["acf"] = {}
            data["acf"].update(acf)
        return data

    def process_fields(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self._walk_meta(data, destination, ObjectKind.POST)

    def process_term_fields(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self._walk_meta(data, destination, ObjectKind.TERM)

    def process_product_fields(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        """WooCommerce keeps meta as a ``[{"id", "key", "value"}]`` list."""
        meta_data = data.get("meta_data")
        if not isinstance(meta_data, list):
            return data
        ctx = self._context(data, destination, ObjectKind.PRODUCT)
        if ctx is None:
            return data
        flat_map = {m["key"]: m.get("value") for m in meta_data if isinstance(m, dict) and m.get("key")}
        acf = self.walker.walk(flat_map, ctx.source_object_id, ctx)
        data["meta_data"] = [m for m in meta_data if isinstance(m, dict) and m.get("key") in flat_map]
        if acf:
            if not isinstance(data.get("acf"), dict):
                data["acf"] = {}
            data["acf"].update(acf)
        return data

    def _process_content(self, data: Dict[str, Any], destination: Destination, kind: ObjectKind, keys: Iterable[str]) -> Dict[str, Any]:
        ctx = self._context(data, destination, kind)
        if ctx is None:
            return data
        for key in keys:
            content = data.get(key)
            # REST responses in the edit context wrap content as {"raw": ..., "rendered": ...}
            if isinstance(content, dict) and isinstance(content.get("raw"), str):
                if has_blocks(content["raw"]):
                    data[key] = {**content, "raw": self.blocks.process(content["raw"], ctx)}
            elif isinstance(content, str) and has_blocks(content):
                data[key] = self.blocks.process(content, ctx)
        return data

    def process_acf_blocks(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self._process_content(data, destination, ObjectKind.POST, ("content",))

    def process_product_blocks(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self._process_content(data, destination, ObjectKind.PRODUCT, ("description", "short_description"))

    def process_term_blocks(self, data: Dict[str, Any], destination: Destination) -> Dict[str, Any]:
        return self._process_content(data, destination, ObjectKind.TERM, ("description",))

    # ------------------------------------------------------------------ #
    # batch run
    # ------------------------------------------------------------------ #

    def load_records(self, records_dir: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Read every ``*.json`` file under ``records_dir``.  A file holds a
        record, a ``{"kind": ..., "data": ...}`` envelope, or a list of either.
        """
        records_dir = records_dir or self.config["crosspost"]["records_dir"]
        records: List[Dict[str, Any]] = []
        for path in sorted(glob.glob(os.path.join(records_dir, "*.json"))):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                log_message(f"Could not read record file {path}: {e}", level="ERROR")
                continue
            for item in loaded if isinstance(loaded, list) else [loaded]:
                if not isinstance(item, dict):
                    continue
                if "data" in item and isinstance(item["data"], dict):
                    records.append({"kind": item.get("kind", ObjectKind.POST.value), "data": item["data"]})
                else:
                    records.append({"kind": ObjectKind.POST.value, "data": item})
        return records

    def run(self, records: List[Dict[str, Any]], destinations: Optional[List[Destination]] = None) -> List[Dict[str, Any]]:
        """
        Transform every record for every destination and write the results
        as JSON files under ``output_dir/<blog_id>/``.
        """
        destinations = destinations if destinations is not None else self.destinations
        output_dir = self.config["crosspost"]["output_dir"]
        written: List[Dict[str, Any]] = []
        for destination in destinations:
            blog_dir = os.path.join(output_dir, destination.blog_id.replace("/", "_"))
            for record in records:
                data = copy.deepcopy(record["data"])
                try:
                    kind = ObjectKind(record.get("kind", ObjectKind.POST.value))
                    data = self.transform_record(data, destination, kind)
                except Exception as e:
                    report_error("RECORD_FAILED", record["data"], e, blog_id=destination.blog_id)
                    continue
                os.makedirs(blog_dir, exist_ok=True)
                name = f"{kind.value}-{data.get('id') or data.get('slug') or len(written)}.json"
                path = os.path.join(blog_dir, name)
                with open(path, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                report_ok("RECORD_WRITTEN", data, {"path": path}, blog_id=destination.blog_id)
                written.append({"kind": kind.value, "blog": destination.blog_id, "path": path})
        return written
