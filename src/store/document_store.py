"""Region-sharded document materialization.

This module writes one JSON shard per state plus the region and postal
code indices a reader needs to load only the shards a query touches.
"""

from __future__ import annotations

from datetime import datetime, timezone
from dataclasses import asdict
from pathlib import Path
import re

from aggregate.cross_reference import CrossReferencedAggregate
from core.constants import (
    ADDITIONAL_DATA_FILE_NAME,
    MANIFEST_FILE_NAME,
    POSTAL_INDEX_FILE_NAME,
    REGION_INDEX_FILE_NAME,
    SHARD_FILE_SUFFIX,
)
from core.logging_config import get_logger
from store.summary_payload import summary_to_payload, write_json_file

_LOGGER = get_logger(__name__)

_UNSAFE_SHARD_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def shard_file_name(state: str) -> str:
    """Return the shard file name for a state code."""
    return _UNSAFE_SHARD_CHARS.sub("_", state) + SHARD_FILE_SUFFIX


class DocumentStore:
    """Writes the document form of one run's aggregate into a directory."""

    def __init__(self, documents_dir: Path) -> None:
        self._documents_dir = documents_dir

    def write(self, aggregate: CrossReferencedAggregate) -> list[Path]:
        """Write shards, indices, and the run manifest.

        Args:
            aggregate: Finished cross-referenced aggregate.

        Returns:
            Written file paths in write order.

        Raises:
            WriteFailureError: If any document cannot be written.
        """
        self._documents_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for state, summaries in aggregate.summaries_by_region().items():
            shard_path = self._documents_dir / shard_file_name(state)
            write_json_file(shard_path, [summary_to_payload(summary) for summary in summaries])
            written.append(shard_path)
        region_index_path = self._documents_dir / REGION_INDEX_FILE_NAME
        write_json_file(region_index_path, aggregate.region_index, indent=2)
        written.append(region_index_path)
        postal_index_path = self._documents_dir / POSTAL_INDEX_FILE_NAME
        write_json_file(postal_index_path, aggregate.postal_code_index.to_payload())
        written.append(postal_index_path)
        if aggregate.supplementary is not None:
            additional_path = self._documents_dir / ADDITIONAL_DATA_FILE_NAME
            write_json_file(additional_path, aggregate.supplementary.to_payload())
            written.append(additional_path)
        manifest_path = self._documents_dir / MANIFEST_FILE_NAME
        write_json_file(manifest_path, _build_manifest(aggregate), indent=2)
        written.append(manifest_path)
        _LOGGER.info(
            "documents_staged",
            documents_dir=str(self._documents_dir),
            shard_count=len(aggregate.region_index),
            file_count=len(written),
        )
        return written


def _build_manifest(aggregate: CrossReferencedAggregate) -> dict[str, object]:
    """Build the run manifest; the only document carrying a timestamp."""
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "facility_count": len(aggregate.summaries),
        "regions": {
            state: shard_file_name(state) for state in aggregate.region_index
        },
        "postal_code_count": len(aggregate.postal_code_index),
        "stats": asdict(aggregate.stats),
    }
