"""Unit tests for staged artifact publication."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from core.errors import WriteFailureError
from store.atomic_publish import StagedArtifact, discard_all, publish_all


def _leftovers(directory: Path) -> list[str]:
    return sorted(path.name for path in directory.iterdir() if path.name.startswith("."))


def test_publish_all_replaces_previous_artifacts(tmp_path) -> None:
    """Published artifacts should replace old ones and leave no staging output."""
    target_dir = tmp_path / "data"
    target_dir.mkdir()
    (target_dir / "old.json").write_text("{}", encoding="utf-8")
    target_file = tmp_path / "snapshot.db"
    target_file.write_text("old", encoding="utf-8")
    documents = StagedArtifact.directory(target_dir)
    database = StagedArtifact.file(target_file)
    (documents.staging_path / "new.json").write_text("{}", encoding="utf-8")
    database.staging_path.write_text("new", encoding="utf-8")

    publish_all([documents, database])

    assert [path.name for path in target_dir.iterdir()] == ["new.json"]
    assert target_file.read_text(encoding="utf-8") == "new"
    assert _leftovers(tmp_path) == []


def test_publish_all_rolls_back_on_failed_swap(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A failing swap should restore every earlier artifact."""
    target_dir = tmp_path / "data"
    target_dir.mkdir()
    (target_dir / "old.json").write_text("{}", encoding="utf-8")
    target_file = tmp_path / "snapshot.db"
    target_file.write_text("old", encoding="utf-8")
    documents = StagedArtifact.directory(target_dir)
    database = StagedArtifact.file(target_file)
    real_replace = os.replace

    def _failing_replace(source: object, destination: object) -> None:
        if Path(str(source)) == database.staging_path:
            raise OSError("disk full")
        real_replace(source, destination)

    monkeypatch.setattr("store.atomic_publish.os.replace", _failing_replace)

    with pytest.raises(WriteFailureError, match="disk full"):
        publish_all([documents, database])

    assert [path.name for path in target_dir.iterdir()] == ["old.json"]
    assert target_file.read_text(encoding="utf-8") == "old"
    assert _leftovers(tmp_path) == []


def test_discard_all_removes_staging_output(tmp_path) -> None:
    """Discarded artifacts should leave the target untouched."""
    documents = StagedArtifact.directory(tmp_path / "data")
    (documents.staging_path / "shard.json").write_text("[]", encoding="utf-8")

    discard_all([documents])

    assert not (tmp_path / "data").exists()
    assert _leftovers(tmp_path) == []


def test_staging_failure_raises_write_failure(tmp_path) -> None:
    """An unwritable parent should raise a write failure."""
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(WriteFailureError):
        StagedArtifact.directory(blocker / "data")


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_published_artifacts_follow_umask(tmp_path) -> None:
    """Published artifacts should get the same mode as freshly created files."""
    previous_umask = os.umask(0o022)
    try:
        documents = StagedArtifact.directory(tmp_path / "data")
        database = StagedArtifact.file(tmp_path / "snapshot.db")
        database.staging_path.write_text("new", encoding="utf-8")

        publish_all([documents, database])
    finally:
        os.umask(previous_umask)

    assert stat.S_IMODE((tmp_path / "data").stat().st_mode) == 0o755
    assert stat.S_IMODE((tmp_path / "snapshot.db").stat().st_mode) == 0o644
