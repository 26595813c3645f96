"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import WaterQConfig
from core.errors import WaterQConfigError


def test_from_env_reads_output_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve output root from environment."""
    monkeypatch.setenv("WATERQ_OUTPUT_ROOT", "./.tmp-waterq")

    config = WaterQConfig.from_env()

    assert config.output_root.name == ".tmp-waterq"
    assert config.documents_dir == config.output_root / "data"
    assert config.database_path == config.output_root / "ucmr5-data.db"


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to documented defaults."""
    for name in (
        "WATERQ_OUTPUT_ROOT",
        "WATERQ_SOURCE_ENCODING",
        "WATERQ_INSERT_BATCH_SIZE",
        "WATERQ_PROGRESS_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)

    config = WaterQConfig.from_env()

    assert config.source_encoding == "latin-1"
    assert config.insert_batch_size == 1000
    assert config.progress_interval == 100000
    assert config.output_root.name == "build"


def test_from_env_raises_for_invalid_batch_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric batch size."""
    monkeypatch.setenv("WATERQ_INSERT_BATCH_SIZE", "not-a-number")

    with pytest.raises(WaterQConfigError):
        WaterQConfig.from_env()

    assert os.getenv("WATERQ_INSERT_BATCH_SIZE") == "not-a-number"


def test_from_env_raises_for_zero_progress_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    """Progress interval must be positive."""
    monkeypatch.setenv("WATERQ_PROGRESS_INTERVAL", "0")

    with pytest.raises(WaterQConfigError, match="WATERQ_PROGRESS_INTERVAL"):
        WaterQConfig.from_env()
