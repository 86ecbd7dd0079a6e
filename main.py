"""
Entry point for the ACF cross-posting transformer.
"""

import glob
import os

from crosspost.crosspost_tool import CrosspostTool
from crosspost.utils.errors import log_message

CONFIG_FILE = "config/crosspost_config.json"


def main():
    """
    Transform every exported record for every configured destination.
    """
    tool = CrosspostTool(config_file=CONFIG_FILE)
    log_message("Starting ACF cross-post preparation.")

    records_dir = tool.config["crosspost"]["records_dir"]
    record_files = glob.glob(os.path.join(records_dir, "*.json"))
    log_message(f"Discovered record files: {record_files}", level="DEBUG")

    if not record_files:
        log_message(f"No exported records (.json) found in '{records_dir}' directory.", level="ERROR")
        return

    destinations = tool.destinations
    if not destinations:
        log_message(f"No destinations configured in {CONFIG_FILE}.", level="ERROR")
        return

    records = tool.load_records(records_dir)
    if not records:
        log_message("No records found in any of the export files.", level="ERROR")
        return

    log_message(f"Found {len(records)} records for {len(destinations)} destinations.")
    written = tool.run(records, destinations)
    log_message(f"Cross-post preparation finished, {len(written)} records written.")


if __name__ == "__main__":
    main()
