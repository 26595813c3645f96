"""Read adapter over the sharded document form.

A postal code query reads the postal code index first and then loads
only the shards of the regions it references.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.constants import POSTAL_INDEX_FILE_NAME, REGION_INDEX_FILE_NAME
from core.errors import WaterQQueryError
from core.types import QueryPage, QueryParams
from query.pagination import matches_filters, paginate, prepare_query
from store.document_store import shard_file_name


class DocumentReader:
    """Answers read queries from a published documents directory."""

    def __init__(self, documents_dir: Path) -> None:
        self._documents_dir = documents_dir

    def search(self, params: QueryParams) -> QueryPage:
        """Resolve one filtered, paginated query.

        Args:
            params: Filters and pagination.

        Returns:
            Page of summary payloads ordered by name, then id.

        Raises:
            WaterQQueryError: If the query is invalid or artifacts are missing.
        """
        prepared = prepare_query(params)
        matches: list[dict[str, Any]] = []
        for state in self._candidate_states(prepared):
            matches.extend(
                system for system in self._load_shard(state) if matches_filters(system, prepared)
            )
        matches.sort(key=lambda system: (system["name"], system["pwsid"]))
        return paginate(matches, prepared)

    def _candidate_states(self, params: QueryParams) -> list[str]:
        """Return the shards a query has to read."""
        region_index = self._read_json(REGION_INDEX_FILE_NAME)
        states = set(region_index)
        if params.state:
            states &= {params.state}
        if params.zipcode:
            postal_index = self._read_json(POSTAL_INDEX_FILE_NAME)
            states &= {
                entry["state"]
                for entry in postal_index.get(params.zipcode, [])
                if entry["state"] is not None
            }
        return sorted(states)

    def _load_shard(self, state: str) -> list[dict[str, Any]]:
        return self._read_json(shard_file_name(state))

    def _read_json(self, file_name: str) -> Any:
        path = self._documents_dir / file_name
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as error:
            raise WaterQQueryError(
                f"Failed to read documents at {path}: file does not exist. "
                "Run 'waterq build' with --format documents or both first."
            ) from error
        except (OSError, json.JSONDecodeError) as error:
            raise WaterQQueryError(
                f"Failed to read documents at {path}: {error}. "
                "Rebuild the document artifacts."
            ) from error
