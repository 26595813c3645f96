"""Per-contaminant observation folding.

This module holds the single tie-break rule shared by both output forms:
an exact result with a value beats a below-limit result, and among exact
results the maximum value wins.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable

from core.constants import RESULT_SIGN_EXACT
from core.types import SampleRecord

ObservationKey = tuple[str, str | None, float | None]


@dataclass
class ContaminantObservation:
    """Aggregated results for one contaminant, unit, and reporting limit.

    Attributes:
        contaminant: Contaminant name.
        units: Result units.
        mrl: Method reporting limit.
        detected: Whether any exact result with a value was seen.
        max_value: Maximum exact result value.
        test_count: Number of folded rows.
        latest_test: Latest ISO collection date.
    """

    contaminant: str
    units: str | None
    mrl: float | None
    detected: bool = False
    max_value: float | None = None
    test_count: int = 0
    latest_test: str | None = None

    @property
    def key(self) -> ObservationKey:
        """Aggregation key within one facility."""
        return (self.contaminant, self.units, self.mrl)

    @property
    def display_value(self) -> float | str | None:
        """Published value: raw maximum when detected, else ``<mrl``."""
        if self.detected:
            return self.max_value
        if self.mrl is None:
            return None
        return f"<{format_number(self.mrl)}"

    def fold(self, record: SampleRecord) -> None:
        """Fold one sample row into this observation."""
        self.test_count += 1
        if is_exact_detection(record.result_sign, record.result_value):
            value = float(record.result_value)  # type: ignore[arg-type]
            self.detected = True
            if self.max_value is None or value > self.max_value:
                self.max_value = value
        if record.collection_date and (
            self.latest_test is None or record.collection_date > self.latest_test
        ):
            self.latest_test = record.collection_date

    def to_payload(self) -> dict[str, object]:
        """Serialize the observation for published documents."""
        return {
            "value": self.display_value,
            "unit": self.units,
            "detected": self.detected,
            "mrl": self.mrl,
            "test_count": self.test_count,
            "latest_test": self.latest_test,
        }


def observation_key(record: SampleRecord) -> ObservationKey:
    """Return the observation key for a sample row."""
    return (record.contaminant, record.units, record.mrl)


def is_exact_detection(result_sign: str | None, result_value: float | None) -> bool:
    """Return whether a result counts as a detection."""
    return result_sign == RESULT_SIGN_EXACT and result_value is not None


def format_number(value: float) -> str:
    """Format a reporting limit without a trailing ``.0`` for whole numbers."""
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def dominant_by_contaminant(
    observations: Iterable[ContaminantObservation],
) -> dict[str, ContaminantObservation]:
    """Pick one observation per contaminant name for name-keyed output.

    Args:
        observations: Observations of one facility, any key.

    Returns:
        Mapping of contaminant name to its dominant observation, sorted by name.
    """
    dominant: dict[str, ContaminantObservation] = {}
    for observation in observations:
        current = dominant.get(observation.contaminant)
        if current is None or _dominance_rank(observation) > _dominance_rank(current):
            dominant[observation.contaminant] = observation
    return {name: dominant[name] for name in sorted(dominant)}


def _dominance_rank(
    observation: ContaminantObservation,
) -> tuple[bool, float, int, str, str, float]:
    detected_value = observation.max_value if observation.detected else None
    return (
        observation.detected,
        detected_value if detected_value is not None else -math.inf,
        observation.test_count,
        observation.latest_test or "",
        observation.units or "",
        observation.mrl if observation.mrl is not None else -math.inf,
    )
