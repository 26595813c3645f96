"""Streaming per-facility aggregation.

This module owns the in-memory aggregate for one pipeline run.
Memory grows with distinct facilities (and their sample ids), never
with the number of input rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from aggregate.contaminant_observation import (
    ContaminantObservation,
    ObservationKey,
    dominant_by_contaminant,
    observation_key,
)
from core.constants import DEFAULT_PROGRESS_INTERVAL
from core.logging_config import get_logger
from core.types import SampleRecord

_LOGGER = get_logger(__name__)


@dataclass
class BuildStats:
    """Counters collected while folding the source streams."""

    sample_rows: int = 0
    malformed_fields: int = 0
    zip_code_rows: int = 0
    orphan_zip_codes: int = 0
    skipped_zip_codes: int = 0
    additional_rows: int = 0
    orphan_additional: int = 0


@dataclass
class WaterSystemSummary:
    """Aggregate for one water system.

    Name, state, EPA region, and size come from the first row seen for
    the system; later rows never overwrite them.
    """

    pwsid: str
    pws_name: str
    state: str
    epa_region: int | None
    size: str | None
    zip_codes: set[str] = field(default_factory=set)
    observations: dict[ObservationKey, ContaminantObservation] = field(default_factory=dict)
    last_tested: str | None = None
    sample_ids: set[str] = field(default_factory=set)

    @classmethod
    def from_sample(cls, record: SampleRecord) -> "WaterSystemSummary":
        """Seed a summary from the first row seen for a system."""
        return cls(
            pwsid=record.pwsid,
            pws_name=record.pws_name,
            state=record.state,
            epa_region=record.epa_region,
            size=record.size,
        )

    @property
    def contaminants_detected(self) -> int:
        """Number of distinct contaminant names with a detection."""
        detected_names = {
            observation.contaminant
            for observation in self.observations.values()
            if observation.detected
        }
        return len(detected_names)

    @property
    def total_samples(self) -> int:
        """Number of distinct sample ids seen for the system."""
        return len(self.sample_ids)

    def fold(self, record: SampleRecord) -> None:
        """Fold one sample row into the summary."""
        key = observation_key(record)
        observation = self.observations.get(key)
        if observation is None:
            observation = ContaminantObservation(
                contaminant=record.contaminant,
                units=record.units,
                mrl=record.mrl,
            )
            self.observations[key] = observation
        observation.fold(record)
        if record.collection_date and (
            self.last_tested is None or record.collection_date > self.last_tested
        ):
            self.last_tested = record.collection_date
        if record.sample_id:
            self.sample_ids.add(record.sample_id)

    def published_contaminants(self) -> dict[str, ContaminantObservation]:
        """Return the name-keyed contaminant view used by documents."""
        return dominant_by_contaminant(self.observations.values())


class AggregationContext:
    """Explicitly owned aggregate for one pipeline run.

    A context is built once per run, filled by a single pass over the
    samples stream, and then handed to the joiner and materializers.
    """

    def __init__(self, progress_interval: int = DEFAULT_PROGRESS_INTERVAL) -> None:
        self._summaries: dict[str, WaterSystemSummary] = {}
        self._progress_interval = progress_interval
        self.stats = BuildStats()

    def __len__(self) -> int:
        return len(self._summaries)

    def __contains__(self, pwsid: object) -> bool:
        return pwsid in self._summaries

    def get(self, pwsid: str) -> WaterSystemSummary | None:
        """Return the summary for a system id, if seen."""
        return self._summaries.get(pwsid)

    def fold_sample(self, record: SampleRecord) -> WaterSystemSummary:
        """Fold one sample row, creating the system summary on first sight."""
        summary = self._summaries.get(record.pwsid)
        if summary is None:
            summary = WaterSystemSummary.from_sample(record)
            self._summaries[record.pwsid] = summary
        summary.fold(record)
        self.stats.sample_rows += 1
        return summary

    def fold_samples(self, records: Iterable[SampleRecord]) -> int:
        """Fold a full samples stream.

        Args:
            records: Sample rows, typically a ``SampleRecordSource``.

        Returns:
            Number of rows folded by this call.
        """
        folded = 0
        for record in records:
            self.fold_sample(record)
            folded += 1
            if folded % self._progress_interval == 0:
                _LOGGER.info("samples_progress", rows=folded, facilities=len(self._summaries))
        _LOGGER.info(
            "samples_folded",
            rows=folded,
            facilities=len(self._summaries),
            detected_systems=sum(
                1 for summary in self._summaries.values() if summary.contaminants_detected
            ),
        )
        return folded

    def summaries(self) -> list[WaterSystemSummary]:
        """Return all summaries ordered by name, then id."""
        return sorted(self._summaries.values(), key=lambda item: (item.pws_name, item.pwsid))

