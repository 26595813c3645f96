"""Type-safe field parsing helpers for run-spec execution.

This module centralizes primitive parsing so run-spec steps report the
same validation errors whether they come from the CLI or the SDK.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.errors import WaterQRunSpecError


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field from a run-spec step."""
    value = optional_string(args, field_name)
    if value is None:
        raise WaterQRunSpecError(f"Run-spec step is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a run-spec step.

    Integers are accepted and stringified, since YAML reads unquoted
    postal codes and ids as numbers.
    """
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise WaterQRunSpecError(f"Run-spec field '{field_name}' must be a string when provided.")


def int_with_default(args: Mapping[str, object], field_name: str, default_value: int) -> int:
    """Read an integer field while preserving explicit zero values."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool) or not isinstance(value, int):
        raise WaterQRunSpecError(f"Run-spec field '{field_name}' must be an integer.")
    return value


def choice_with_default(
    args: Mapping[str, object],
    field_name: str,
    choices: Sequence[str],
    default_value: str,
) -> str:
    """Read an enumerated string field from a run-spec step."""
    value = optional_string(args, field_name)
    if value is None:
        return default_value
    if value in choices:
        return value
    supported_rows = ", ".join(choices)
    raise WaterQRunSpecError(f"Invalid {field_name} '{value}'. Use one of: {supported_rows}.")
