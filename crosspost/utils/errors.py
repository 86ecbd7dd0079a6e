"""
Structured logging helpers for cross-posting events.

Two kinds of output are produced:

``log_message``
    A console line ``[LEVEL] message``.  When a log file has been configured
    with :func:`configure_log_file` the line is appended there as well.  The
    transformation modules use this for every non-fatal condition (missing
    declarations, unresolved references, failed remote lookups).

``report_error`` / ``report_ok``
    JSON Lines entries under ``reports/crosspost`` describing what happened
    to one record on one destination, so a run can be reviewed afterwards.

The ``EVENTS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

EVENTS: Dict[str, str] = {
    "RECORD_FAILED": "Record could not be transformed",
    "RECORD_WRITTEN": "Transformed record written",
}

_REPORT_DIR = os.path.join("reports", "crosspost")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")

_log_file: Optional[str] = None
_quiet_levels = {"DEBUG"}


def configure_log_file(path: Optional[str], *, debug: bool = False) -> None:
    """Also append log lines to ``path`` (``None`` turns file logging off)."""
    global _log_file
    _log_file = path
    if debug:
        _quiet_levels.discard("DEBUG")
    else:
        _quiet_levels.add("DEBUG")


def log_message(message: str, level: str = "INFO") -> None:
    if level in _quiet_levels:
        return
    print(f"[{level}] {message}")
    if _log_file:
        directory = os.path.dirname(_log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def _entry(code: str, record: Dict[str, Any], blog_id: Optional[str]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": EVENTS.get(code, code),
        "id": record.get("id"),
        "slug": record.get("slug"),
        "blog": blog_id,
    }


def report_error(
    code: str,
    record: Dict[str, Any],
    exc: Optional[Exception] = None,
    *,
    blog_id: Optional[str] = None,
) -> None:
    """Log an error event for ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`EVENTS` its value will be used as the message.
    record:
        The record being cross-posted.  Only the ``id`` and ``slug`` keys
        are referenced if present.
    exc:
        Optional exception instance that triggered the error.
    blog_id:
        Destination site the record was prepared for.
    """
    entry = _entry(code, record, blog_id)
    if exc is not None:
        entry["error"] = str(exc)
    log_message(f"{entry['message']} - {record.get('slug') or record.get('id') or ''}", level="ERROR")
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(
    code: str,
    record: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    blog_id: Optional[str] = None,
) -> None:
    """Log a successful event for ``record``, merging ``extra`` into the entry."""
    entry = _entry(code, record, blog_id)
    if extra:
        entry.update(extra)
    log_message(f"{entry['message']} - {record.get('slug') or record.get('id') or ''}", level="OK")
    _write_jsonl(_OK_LOG, entry)
