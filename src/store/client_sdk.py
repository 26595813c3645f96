"""Python SDK for build and query operations.

This module exposes high-level APIs for rebuilding the published
artifacts and for reading them back through either output form.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import WaterQConfig
from core.constants import QUERY_SOURCE_DOCUMENTS, QUERY_SOURCE_RELATIONAL
from core.errors import WaterQQueryError
from core.run_spec_execution import execute_run_spec_file
from core.types import BuildOptions, BuildResult, QueryPage, QueryParams
from ingest.pipeline import build_artifacts
from query.document_reader import DocumentReader
from query.relational_reader import RelationalReader


class WaterQClient:
    """Primary SDK entry point for build and read workflows."""

    def __init__(self, config: WaterQConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or WaterQConfig.from_env()

    @property
    def config(self) -> WaterQConfig:
        """Runtime configuration used by this client."""
        return self._config

    def build(self, options: BuildOptions) -> BuildResult:
        """Rebuild and publish the requested output forms.

        Args:
            options: Build options.

        Returns:
            Summary of the completed run.

        Raises:
            SourceUnavailableError: If an input file is missing or mis-shaped.
            WriteFailureError: If an output artifact cannot be written.
        """
        return build_artifacts(options, self._config)

    def query(self, params: QueryParams, source: str = QUERY_SOURCE_DOCUMENTS) -> QueryPage:
        """Search published water systems.

        Args:
            params: Filters and pagination.
            source: ``documents`` or ``relational``.

        Returns:
            One page of summary payloads.

        Raises:
            WaterQQueryError: If the query, source, or artifacts are invalid.
        """
        if source == QUERY_SOURCE_DOCUMENTS:
            return DocumentReader(self._config.documents_dir).search(params)
        if source == QUERY_SOURCE_RELATIONAL:
            return RelationalReader(self._config.database_path).search(params)
        raise WaterQQueryError(
            f"Unsupported query source '{source}'. "
            f"Use '{QUERY_SOURCE_DOCUMENTS}' or '{QUERY_SOURCE_RELATIONAL}'."
        )

    def with_output_root(self, output_root: str) -> "WaterQClient":
        """Clone the client with a different output root.

        Args:
            output_root: New output root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(output_root).expanduser().resolve()
        return WaterQClient(replace(self._config, output_root=resolved_root))

    def run_spec(self, spec_file: str) -> tuple[str, ...]:
        """Execute a YAML run-spec through the shared execution engine.

        Args:
            spec_file: Path to YAML run-spec file.

        Returns:
            Ordered command output lines.
        """
        return execute_run_spec_file(self, spec_file)
