"""Runtime configuration model for waterq.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DATABASE_FILE_NAME,
    DEFAULT_INSERT_BATCH_SIZE,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_SOURCE_ENCODING,
    DOCUMENTS_DIR_NAME,
)
from core.errors import WaterQConfigError


@dataclass(frozen=True)
class WaterQConfig:
    """Validated runtime configuration.

    Attributes:
        output_root: Directory that receives the published artifacts.
        source_encoding: Text encoding of the tab-delimited source files.
        insert_batch_size: Rows per relational insert transaction.
        progress_interval: Rows between progress log events.
    """

    output_root: Path
    source_encoding: str
    insert_batch_size: int
    progress_interval: int

    @classmethod
    def from_env(cls) -> "WaterQConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            WaterQConfigError: If environment values are invalid.
        """
        output_root_value = os.getenv("WATERQ_OUTPUT_ROOT", str(DEFAULT_OUTPUT_ROOT))
        source_encoding = os.getenv("WATERQ_SOURCE_ENCODING", DEFAULT_SOURCE_ENCODING)
        insert_batch_size = _parse_positive_int(
            "WATERQ_INSERT_BATCH_SIZE",
            os.getenv("WATERQ_INSERT_BATCH_SIZE", str(DEFAULT_INSERT_BATCH_SIZE)),
        )
        progress_interval = _parse_positive_int(
            "WATERQ_PROGRESS_INTERVAL",
            os.getenv("WATERQ_PROGRESS_INTERVAL", str(DEFAULT_PROGRESS_INTERVAL)),
        )
        return cls(
            output_root=Path(output_root_value).expanduser().resolve(),
            source_encoding=source_encoding,
            insert_batch_size=insert_batch_size,
            progress_interval=progress_interval,
        )

    @property
    def documents_dir(self) -> Path:
        """Directory holding the sharded document artifacts."""
        return self.output_root / DOCUMENTS_DIR_NAME

    @property
    def database_path(self) -> Path:
        """Path of the relational snapshot file."""
        return self.output_root / DATABASE_FILE_NAME


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        WaterQConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise WaterQConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive numeric value."
        ) from error
    if value < 1:
        raise WaterQConfigError(
            f"Invalid {variable_name} value: expected value >= 1, got {value}. "
            f"Set {variable_name} to a positive numeric value."
        )
    return value
