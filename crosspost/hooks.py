"""
Filter registry.

The delivery pipeline prepares a record by passing it through every callback
registered on a tag, lowest priority first (registration order breaks
ties).  A callback receives the filtered value plus as many of the extra
arguments as its declared arity allows, and returns the new value.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

Callback = Callable[..., Any]


class FilterRegistry:
    def __init__(self) -> None:
        self._filters: Dict[str, List[Tuple[int, int, Callback, int]]] = {}
        self._added = 0

    def add_filter(self, tag: str, callback: Callback, priority: int = 10, accepted_args: int = 1) -> None:
        if accepted_args < 1:
            raise ValueError("a filter callback takes at least the filtered value")
        self._added += 1
        self._filters.setdefault(tag, []).append((priority, self._added, callback, accepted_args))
        self._filters[tag].sort(key=lambda entry: (entry[0], entry[1]))

    def remove_filter(self, tag: str, callback: Callback) -> bool:
        entries = self._filters.get(tag, [])
        kept = [entry for entry in entries if entry[2] != callback]
        self._filters[tag] = kept
        return len(kept) != len(entries)

    def has_filter(self, tag: str) -> bool:
        return bool(self._filters.get(tag))

    def apply_filters(self, tag: str, value: Any, *args: Any) -> Any:
        for _, _, callback, accepted_args in self._filters.get(tag, []):
            value = callback(value, *args[: accepted_args - 1])
        return value
