"""
Utility helpers used by the cross-posting tool.

This subpackage exposes the console/file log helper and the JSON Lines
event reports.
"""

from .errors import EVENTS, configure_log_file, log_message, report_error, report_ok

__all__ = ["EVENTS", "configure_log_file", "log_message", "report_error", "report_ok"]
