from __future__ import annotations

import json
import os
from typing import Dict, Optional, Union

from crosspost.utils.errors import log_message

Id = Union[int, str]


class MappingTable:
    """
    Source id → destination id table, one per destination site and object
    namespace (``attachment``, ``post``, ``product``...).

    The table is written by whoever delivers records and media; the
    transformer only calls :meth:`lookup`.  On disk it is a JSON document
    shaped ``{blog_id: {namespace: {source_id: destination_id}}}``.
    """

    def __init__(self, data: Optional[Dict[str, Dict[str, Dict[str, int]]]] = None) -> None:
        self._data: Dict[str, Dict[str, Dict[str, int]]] = data or {}

    @classmethod
    def load(cls, path: Optional[str]) -> "MappingTable":
        if not path or not os.path.exists(path):
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log_message(f"Could not read mapping table {path}: {e}. Starting with an empty table.", level="WARNING")
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls(data)

    def save(self, path: str) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)

    def lookup(self, namespace: str, source_id: Id, blog_id: str) -> Optional[int]:
        try:
            found = self._data.get(blog_id, {}).get(namespace, {}).get(str(int(source_id)))
        except (TypeError, ValueError):
            return None
        return int(found) if found else None

    def record(self, namespace: str, source_id: Id, blog_id: str, destination_id: int) -> None:
        self._data.setdefault(blog_id, {}).setdefault(namespace, {})[str(int(source_id))] = int(destination_id)
