"""Staging and atomic publication of output artifacts.

Artifacts are written next to their final location and swapped in by
rename only once every artifact of the run has been staged. A failed
run leaves the previously published artifacts untouched.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Sequence
from uuid import uuid4

from core.errors import WriteFailureError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class StagedArtifact:
    """A file or directory staged beside its publish target."""

    def __init__(self, target: Path, is_directory: bool) -> None:
        self._target = target
        self._is_directory = is_directory
        self._backup: Path | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            prefix = f".{target.name}-staging-"
            if is_directory:
                self._staging = Path(tempfile.mkdtemp(prefix=prefix, dir=target.parent))
            else:
                handle, staging_name = tempfile.mkstemp(prefix=prefix, dir=target.parent)
                os.close(handle)
                self._staging = Path(staging_name)
            # Staging entries start owner-only; published ones follow the umask.
            os.chmod(self._staging, _default_mode(is_directory))
        except OSError as error:
            raise WriteFailureError(
                f"Failed to create staging location for {target}: {error}. "
                "Check write permissions and available disk space."
            ) from error

    @classmethod
    def directory(cls, target: Path) -> "StagedArtifact":
        """Stage a directory artifact."""
        return cls(target, is_directory=True)

    @classmethod
    def file(cls, target: Path) -> "StagedArtifact":
        """Stage a single-file artifact."""
        return cls(target, is_directory=False)

    @property
    def staging_path(self) -> Path:
        """Location to write the artifact into before publication."""
        return self._staging

    @property
    def target(self) -> Path:
        """Final publish location."""
        return self._target

    def swap_in(self) -> None:
        """Move the previous artifact aside and the staged one into place."""
        if self._target.exists():
            backup = self._target.with_name(f".{self._target.name}-previous-{uuid4().hex[:8]}")
            os.replace(self._target, backup)
            self._backup = backup
        try:
            os.replace(self._staging, self._target)
        except OSError:
            self.roll_back()
            raise

    def roll_back(self) -> None:
        """Restore the previous artifact after a failed swap."""
        if self._target.exists():
            _remove_path(self._target)
        if self._backup is None:
            return
        os.replace(self._backup, self._target)
        self._backup = None

    def finalize(self) -> None:
        """Delete the previous artifact once publication succeeded."""
        if self._backup is not None:
            _remove_path(self._backup)
            self._backup = None

    def discard(self) -> None:
        """Delete staged output that will not be published."""
        if self._staging.exists():
            _remove_path(self._staging)


def publish_all(artifacts: Sequence[StagedArtifact]) -> None:
    """Publish staged artifacts together or not at all.

    Args:
        artifacts: Fully written staged artifacts.

    Raises:
        WriteFailureError: If any swap fails; earlier swaps are rolled back.
    """
    swapped: list[StagedArtifact] = []
    try:
        for artifact in artifacts:
            artifact.swap_in()
            swapped.append(artifact)
    except OSError as error:
        for artifact in reversed(swapped):
            artifact.roll_back()
        discard_all(artifacts)
        raise WriteFailureError(
            f"Failed to publish artifacts: {error}. "
            "Previous artifacts were restored; rerun the build."
        ) from error
    for artifact in artifacts:
        artifact.finalize()
    _LOGGER.info("artifacts_published", targets=[str(item.target) for item in artifacts])


def discard_all(artifacts: Sequence[StagedArtifact]) -> None:
    """Remove staging output for every artifact."""
    for artifact in artifacts:
        artifact.discard()


def _default_mode(is_directory: bool) -> int:
    """Mode a plain mkdir or open would give under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return (0o777 if is_directory else 0o666) & ~umask


def _remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()
