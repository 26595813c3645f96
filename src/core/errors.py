"""waterq exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Fatal pipeline conditions each have their own type; recoverable field
and reference problems are counted instead of raised.
"""

from __future__ import annotations


class WaterQError(Exception):
    """Base exception for all waterq failures."""


class WaterQConfigError(WaterQError):
    """Raised for invalid runtime configuration."""


class SourceUnavailableError(WaterQError):
    """Raised when a required input file is missing, unreadable, or mis-shaped."""


class WriteFailureError(WaterQError):
    """Raised when an output artifact cannot be staged or published."""


class WaterQRunSpecError(WaterQError):
    """Raised for invalid or unsupported run-spec configuration."""


class WaterQQueryError(WaterQError):
    """Raised for invalid read queries or missing materialized artifacts."""
