"""
JSON Artifact Loading

Writes the item catalog and sponsorship plans as the JSON files the static
site imports. Output is deterministic for identical input.
"""

import json
import logging
import os
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)


class JSONArtifactWriter:
    """
    Serializes keyed records to a pretty-printed UTF-8 JSON file.

    Key order follows the mapping's insertion order, so output is stable
    across runs over the same source tabs.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def serialize(self, records: Mapping[str, Any]) -> str:
        """
        Render records as JSON text.

        Args:
            records: Mapping of key to a record with to_dict() or a plain dict

        Returns:
            JSON document text
        """
        payload: Dict[str, Any] = {
            key: record.to_dict() if hasattr(record, "to_dict") else record
            for key, record in records.items()
        }
        return json.dumps(payload, ensure_ascii=False, indent=self.indent)

    def write(self, records: Mapping[str, Any], output_path: str) -> int:
        """
        Write records to output_path, creating parent directories.

        Args:
            records: Mapping of key to record
            output_path: Destination file

        Returns:
            Number of top-level records written

        Raises:
            OSError: If the file cannot be written
        """
        document = self.serialize(records)

        try:
            parent = os.path.dirname(output_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(document)
        except OSError as e:
            logger.error(f"Failed to write {output_path}: {e}")
            raise

        logger.info(f"Successfully wrote {len(records)} records to {output_path}")
        return len(records)


def write_items(items: Mapping[str, Any], output_path: str) -> int:
    """
    Convenience function to write the item catalog.

    Args:
        items: Mapping of item code to Item
        output_path: Destination file

    Returns:
        Number of items written
    """
    writer = JSONArtifactWriter()
    return writer.write(items, output_path)


def write_plans(plans: Mapping[str, Any], output_path: str) -> int:
    """
    Convenience function to write the sponsorship plans.

    Args:
        plans: Mapping of plan slug to Plan
        output_path: Destination file

    Returns:
        Number of plans written
    """
    writer = JSONArtifactWriter()
    return writer.write(plans, output_path)
