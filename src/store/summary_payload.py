"""Shared JSON serialization for water system summaries.

This module centralizes the published summary shape. It is reused by
the document materializer and by both read adapters, so every output
form returns the same payload for the same system.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from aggregate.aggregation_context import WaterSystemSummary
from aggregate.contaminant_observation import ContaminantObservation
from core.errors import WriteFailureError


def build_system_payload(
    *,
    pwsid: str,
    name: str,
    state: str,
    region: int | None,
    size: str | None,
    zip_codes: Iterable[str],
    contaminants: Mapping[str, ContaminantObservation],
    contaminants_detected: int,
    last_tested: str | None,
    total_samples: int,
) -> dict[str, Any]:
    """Build the published payload for one water system.

    Args:
        pwsid: Water system id.
        name: Display name.
        state: Region code.
        region: EPA region number.
        size: Size class.
        zip_codes: Postal codes served.
        contaminants: Name-keyed dominant observations.
        contaminants_detected: Count of detected contaminant names.
        last_tested: Latest ISO collection date.
        total_samples: Count of distinct sample ids.

    Returns:
        JSON-safe summary payload.
    """
    return {
        "pwsid": pwsid,
        "name": name,
        "state": state,
        "region": region,
        "size": size,
        "zip_codes": sorted(set(zip_codes)),
        "contaminants": {
            contaminant: observation.to_payload()
            for contaminant, observation in sorted(contaminants.items())
        },
        "summary": {
            "contaminants_detected": contaminants_detected,
            "last_tested": last_tested,
            "total_samples": total_samples,
        },
    }


def summary_to_payload(summary: WaterSystemSummary) -> dict[str, Any]:
    """Serialize an aggregated summary into its published payload."""
    return build_system_payload(
        pwsid=summary.pwsid,
        name=summary.pws_name,
        state=summary.state,
        region=summary.epa_region,
        size=summary.size,
        zip_codes=summary.zip_codes,
        contaminants=summary.published_contaminants(),
        contaminants_detected=summary.contaminants_detected,
        last_tested=summary.last_tested,
        total_samples=summary.total_samples,
    )


def write_json_file(path: Path, payload: object, indent: int | None = None) -> None:
    """Write a JSON document deterministically.

    Args:
        path: Output file path.
        payload: JSON-safe payload.
        indent: Indentation for human-facing index files; compact when ``None``.

    Raises:
        WriteFailureError: If the file cannot be written.
    """
    separators = None if indent is not None else (",", ":")
    text = json.dumps(payload, indent=indent, separators=separators, ensure_ascii=False)
    try:
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as error:
        raise WriteFailureError(
            f"Failed to write {path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
