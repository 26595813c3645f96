"""Public SDK surface for waterq.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import WaterQConfig
from core.errors import (
    SourceUnavailableError,
    WaterQError,
    WaterQQueryError,
    WriteFailureError,
)
from core.types import BuildOptions, BuildResult, QueryPage, QueryParams
from store.client_sdk import WaterQClient

__all__ = [
    "BuildOptions",
    "BuildResult",
    "QueryPage",
    "QueryParams",
    "SourceUnavailableError",
    "WaterQClient",
    "WaterQConfig",
    "WaterQError",
    "WaterQQueryError",
    "WriteFailureError",
]
