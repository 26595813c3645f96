"""Build orchestration for the water quality pipeline.

This module coordinates source validation, the streaming aggregation
pass, cross-reference joins, and staged materialization of both output
forms, publishing them together only after every stage succeeded.
"""

from __future__ import annotations

from aggregate.aggregation_context import AggregationContext
from aggregate.cross_reference import (
    CrossReferencedAggregate,
    PostalCodeIndex,
    collect_additional_data,
    finalize_aggregate,
    join_zip_codes,
)
from core.config import WaterQConfig
from core.constants import (
    OUTPUT_FORMAT_BOTH,
    OUTPUT_FORMAT_DOCUMENTS,
    OUTPUT_FORMAT_RELATIONAL,
    SUPPORTED_OUTPUT_FORMATS,
)
from core.errors import WaterQConfigError
from core.logging_config import get_logger
from core.types import BuildOptions, BuildResult
from ingest.record_reader import (
    AdditionalDataRecordSource,
    SampleRecordSource,
    ZipCodeRecordSource,
)
from store.atomic_publish import StagedArtifact, discard_all, publish_all
from store.document_store import DocumentStore
from store.relational_store import RelationalStore

_LOGGER = get_logger(__name__)


class BuildPipelineRunner:
    """Single-run owner of the sources, the aggregate, and staged outputs."""

    def __init__(self, options: BuildOptions, config: WaterQConfig) -> None:
        if options.output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise WaterQConfigError(
                f"Unsupported output format '{options.output_format}'. "
                f"Use one of: {', '.join(SUPPORTED_OUTPUT_FORMATS)}."
            )
        self._options = options
        self._config = config
        encoding = config.source_encoding
        self._samples = SampleRecordSource(options.samples_path, encoding)
        self._zip_codes = (
            ZipCodeRecordSource(options.zip_codes_path, encoding)
            if options.zip_codes_path
            else None
        )
        self._additional = (
            AdditionalDataRecordSource(options.additional_path, encoding)
            if options.additional_path
            else None
        )

    def run(self) -> BuildResult:
        """Execute the build and return its summary."""
        self._validate_sources()
        aggregate = self._build_aggregate()
        artifacts = self._stage_outputs(aggregate)
        publish_all(artifacts)
        result = self._build_result(aggregate)
        _LOGGER.info(
            "build_completed",
            samples_path=self._options.samples_path,
            output_format=self._options.output_format,
            sample_rows=result.sample_rows,
            facility_count=result.facility_count,
            region_count=result.region_count,
            postal_code_count=result.postal_code_count,
            malformed_field_count=result.malformed_field_count,
        )
        return result

    def _validate_sources(self) -> None:
        """Fail before any output is touched when a source is unusable."""
        self._samples.validate()
        if self._zip_codes is not None:
            self._zip_codes.validate()
        if self._additional is not None:
            self._additional.validate()

    def _build_aggregate(self) -> CrossReferencedAggregate:
        context = AggregationContext(progress_interval=self._config.progress_interval)
        context.fold_samples(self._samples)
        postal_code_index = (
            join_zip_codes(context, self._zip_codes)
            if self._zip_codes is not None
            else PostalCodeIndex()
        )
        supplementary = (
            collect_additional_data(context, self._additional)
            if self._additional is not None
            else None
        )
        context.stats.malformed_fields = sum(
            source.malformed_field_count
            for source in (self._samples, self._zip_codes, self._additional)
            if source is not None
        )
        return finalize_aggregate(context, postal_code_index, supplementary)

    def _stage_outputs(self, aggregate: CrossReferencedAggregate) -> list[StagedArtifact]:
        artifacts: list[StagedArtifact] = []
        try:
            if self._writes(OUTPUT_FORMAT_DOCUMENTS):
                documents = StagedArtifact.directory(self._config.documents_dir)
                artifacts.append(documents)
                DocumentStore(documents.staging_path).write(aggregate)
            if self._writes(OUTPUT_FORMAT_RELATIONAL):
                database = StagedArtifact.file(self._config.database_path)
                artifacts.append(database)
                RelationalStore(database.staging_path, self._config.insert_batch_size).write(
                    samples=self._samples,
                    zip_codes=self._zip_codes,
                    additional=self._additional,
                    expected_facility_count=len(aggregate.summaries),
                )
        except Exception:
            discard_all(artifacts)
            raise
        return artifacts

    def _writes(self, output_format: str) -> bool:
        return self._options.output_format in (output_format, OUTPUT_FORMAT_BOTH)

    def _build_result(self, aggregate: CrossReferencedAggregate) -> BuildResult:
        stats = aggregate.stats
        return BuildResult(
            sample_rows=stats.sample_rows,
            facility_count=len(aggregate.summaries),
            region_count=len(aggregate.region_index),
            postal_code_count=len(aggregate.postal_code_index),
            malformed_field_count=stats.malformed_fields,
            orphan_zip_code_count=stats.orphan_zip_codes,
            orphan_additional_count=stats.orphan_additional,
            documents_dir=(
                str(self._config.documents_dir)
                if self._writes(OUTPUT_FORMAT_DOCUMENTS)
                else None
            ),
            database_path=(
                str(self._config.database_path)
                if self._writes(OUTPUT_FORMAT_RELATIONAL)
                else None
            ),
        )


def build_artifacts(options: BuildOptions, config: WaterQConfig) -> BuildResult:
    """Run the full pipeline and publish the requested output forms.

    Args:
        options: Build request options.
        config: Runtime configuration.

    Returns:
        Summary of the completed run.

    Raises:
        SourceUnavailableError: If an input file is missing or mis-shaped.
        WriteFailureError: If an output artifact cannot be written.
    """
    runner = BuildPipelineRunner(options, config)
    return runner.run()
