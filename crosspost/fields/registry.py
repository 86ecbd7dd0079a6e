"""
ACF field declaration registry.

The source site's field groups are read from an ACF JSON export (the file
written by *ACF → Tools → Export*, or the ``acf-json`` directory contents).
Raw field dictionaries are indexed by key up front, but a
:class:`FieldDeclaration` is only built when a field is actually met.

:class:`DeclarationCache` wraps a registry for the duration of a single
run so repeated keys (every row of a repeater) are validated once.
"""

from __future__ import annotations

import glob
import json
import os
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from crosspost.models import FieldDeclaration
from crosspost.utils.errors import log_message

ObjectId = Union[int, str]


class FieldRegistry:
    """Interface of the source site's field registry."""

    def get_field_declaration(self, key: str) -> Optional[FieldDeclaration]:
        raise NotImplementedError

    def get_field_declaration_pointer(self, object_id: ObjectId, field_name: str) -> Optional[str]:
        raise NotImplementedError


class AcfExportRegistry(FieldRegistry):
    def __init__(
        self,
        field_groups: Iterable[Dict[str, Any]] = (),
        *,
        object_pointers: Optional[Dict[str, Dict[str, str]]] = None,
    ) -> None:
        self._raw: Dict[str, Tuple[Dict[str, Any], List[str]]] = {}
        self._top_level_by_name: Dict[str, List[str]] = {}
        self._object_pointers = {str(k): dict(v) for k, v in (object_pointers or {}).items()}
        for group in field_groups:
            if isinstance(group, dict):
                self._index(group.get("fields") or [], [])

    @classmethod
    def from_path(cls, path: Optional[str]) -> "AcfExportRegistry":
        """
        Load a single export file or every ``*.json`` file in a directory.
        Unreadable files are reported and skipped.
        """
        if not path:
            return cls()
        files = sorted(glob.glob(os.path.join(path, "*.json"))) if os.path.isdir(path) else [path]
        groups: List[Dict[str, Any]] = []
        for file_path in files:
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                log_message(f"Could not read field groups from {file_path}: {e}", level="WARNING")
                continue
            groups.extend(data if isinstance(data, list) else [data])
        return cls(groups)

    def _index(self, fields: List[Dict[str, Any]], path: List[str]) -> None:
        for raw in fields:
            if not isinstance(raw, dict) or not raw.get("key"):
                continue
            self._raw[raw["key"]] = (raw, path)
            if not path and raw.get("name"):
                self._top_level_by_name.setdefault(raw["name"], []).append(raw["key"])
            child_path = path + [str(raw.get("name") or "")]
            self._index(raw.get("sub_fields") or [], child_path)
            layouts = raw.get("layouts") or []
            if isinstance(layouts, dict):
                layouts = list(layouts.values())
            for layout in layouts:
                if isinstance(layout, dict):
                    self._index(layout.get("sub_fields") or [], child_path)

    def add_object_pointer(self, object_id: ObjectId, field_name: str, key: str) -> None:
        self._object_pointers.setdefault(str(object_id), {})[field_name] = key

    def get_field_declaration(self, key: str) -> Optional[FieldDeclaration]:
        found = self._raw.get(key)
        if found is None:
            return None
        raw, path = found
        return FieldDeclaration.model_validate({**raw, "nesting_path": path})

    def get_field_declaration_pointer(self, object_id: ObjectId, field_name: str) -> Optional[str]:
        pointer = self._object_pointers.get(str(object_id), {}).get(field_name)
        if pointer:
            return pointer
        # ACF resolves a bare name the same way when it is unambiguous.
        candidates = self._top_level_by_name.get(field_name, [])
        return candidates[0] if len(candidates) == 1 else None


class DeclarationCache:
    """Per-run memo in front of a :class:`FieldRegistry`."""

    def __init__(self, registry: FieldRegistry) -> None:
        self.registry = registry
        self._declarations: Dict[str, Optional[FieldDeclaration]] = {}

    def get(self, key: Optional[str]) -> Optional[FieldDeclaration]:
        if not key or not isinstance(key, str):
            return None
        if key not in self._declarations:
            try:
                self._declarations[key] = self.registry.get_field_declaration(key)
            except (LookupError, OSError, ValueError) as e:
                log_message(f"Field registry lookup for {key} failed: {e}", level="WARNING")
                self._declarations[key] = None
        return self._declarations[key]

    def pointer(self, object_id: ObjectId, field_name: str) -> Optional[str]:
        try:
            return self.registry.get_field_declaration_pointer(object_id, field_name)
        except (LookupError, OSError, ValueError) as e:
            log_message(f"Field pointer lookup for {field_name} failed: {e}", level="WARNING")
            return None
