# src/tracelog/writer/fallback.py
"""Local-disk persistence for batches the collector could not accept.

Each failed batch becomes one file of newline-delimited serialized records,
named by UTC timestamp so that a directory listing sorts oldest first.
Files are deleted only after their content has been pushed successfully.

Serverless runtimes (and hosts without a writable temp dir) skip this tier
entirely; the writer re-queues in memory instead.
"""

from __future__ import annotations

import itertools
import os
import tempfile
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

import structlog

from tracelog.writer.records import CommitLog

logger = structlog.get_logger(__name__)

# Environment variables whose presence marks a read-only serverless runtime
_SERVERLESS_ENV_VARS: tuple[str, ...] = ("AWS_LAMBDA_FUNCTION_NAME",)

_FILE_PREFIX = "logs-"
_FILE_SUFFIX = ".log"


def is_serverless() -> bool:
    return any(os.environ.get(name) is not None for name in _SERVERLESS_ENV_VARS)


def has_writable_tempdir(root: Path | None = None) -> bool:
    target = root if root is not None else Path(tempfile.gettempdir())
    return os.access(target, os.W_OK)


def is_restricted_environment(root: Path | None = None) -> bool:
    """True when local fallback files must not be written."""
    return is_serverless() or not has_writable_tempdir(root)


class FallbackStore:
    """Per-writer directory of undelivered batches.

    Example:
        store = FallbackStore.for_writer(writer_id)
        store.write(records)
        store.replay(lambda body: api.push_logs(repo_id, body))
    """

    def __init__(self, logs_dir: Path) -> None:
        self._logs_dir = logs_dir
        # Disambiguates files written within the same timestamp tick
        self._sequence = itertools.count()

    @classmethod
    def for_writer(cls, writer_id: str, root: Path | None = None) -> FallbackStore:
        """Build the store scoped to one writer instance.

        Layout: ``{root or tempdir}/tracelog-sdk/{writer_id}/logs``
        """
        base = root if root is not None else Path(tempfile.gettempdir())
        return cls(base / "tracelog-sdk" / writer_id / "logs")

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir

    def write(self, records: Sequence[CommitLog]) -> Path:
        """Persist one batch as a new file.

        Returns:
            Path of the file written

        Raises:
            OSError: If the directory or file cannot be written
        """
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        path = self._logs_dir / f"{_FILE_PREFIX}{stamp}-{next(self._sequence):06d}{_FILE_SUFFIX}"
        path.write_text("\n".join(record.serialize() for record in records), encoding="utf-8")
        logger.info("Persisted undelivered logs to disk", path=str(path), records=len(records))
        return path

    def pending_files(self) -> list[Path]:
        """Persisted batch files, oldest first."""
        if not self._logs_dir.is_dir():
            return []
        return sorted(
            path
            for path in self._logs_dir.iterdir()
            if path.is_file() and path.name.startswith(_FILE_PREFIX) and path.name.endswith(_FILE_SUFFIX)
        )

    def replay(self, push: Callable[[str], None]) -> int:
        """Push every pending file oldest first, deleting each one on success.

        A file whose push fails stays on disk for the next cycle; later
        files are still attempted.

        Args:
            push: Sends one newline-delimited body; raises on failure

        Returns:
            Number of files delivered and removed
        """
        delivered = 0
        for path in self.pending_files():
            try:
                body = path.read_text(encoding="utf-8")
                push(body)
            except Exception as e:
                logger.warning("Failed to re-push persisted logs", path=str(path), error=str(e))
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                pass  # a concurrent flush cycle already removed it
            delivered += 1
        return delivered
