"""
Snapshot cache for ghdb.

Holds exactly one snapshot in a JSON file. Every sync replaces the file
wholesale through a temp file + rename, so readers see either the old
snapshot or the new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import CacheNotFoundError, CorruptCacheError
from .github import PullRequest, Repository


ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time capture of all repositories and open pull requests."""

    timestamp: datetime = ZERO_TIME
    repositories: tuple[Repository, ...] = field(default_factory=tuple)
    pull_requests: tuple[PullRequest, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "repositories": [repo.to_dict() for repo in self.repositories],
            "pull_requests": [pr.to_dict() for pr in self.pull_requests],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """Parse a stored snapshot. Raises KeyError/TypeError/ValueError on bad shape."""
        if not isinstance(data, dict):
            raise TypeError(f"snapshot must be an object, got {type(data).__name__}")

        raw_timestamp = data["timestamp"]
        if not isinstance(raw_timestamp, str):
            raise TypeError("'timestamp' must be a string")
        timestamp = datetime.fromisoformat(raw_timestamp.replace("Z", "+00:00"))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        repositories = data["repositories"]
        pull_requests = data["pull_requests"]
        if not isinstance(repositories, list) or not isinstance(pull_requests, list):
            raise TypeError("'repositories' and 'pull_requests' must be lists")

        return cls(
            timestamp=timestamp,
            repositories=tuple(Repository.from_dict(item) for item in repositories),
            pull_requests=tuple(PullRequest.from_dict(item) for item in pull_requests),
        )


class SnapshotStore:
    """File-backed store for the single current snapshot."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._snapshot: Snapshot | None = None

    def load(self) -> Snapshot:
        """
        Return the current snapshot.

        The file is read once per store; later calls return the in-memory
        copy.

        Raises:
            CacheNotFoundError: No cache file exists
            CorruptCacheError: The file does not decode to a snapshot
        """
        if self._snapshot is not None:
            return self._snapshot

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CacheNotFoundError(f"No cache file at {self.path}. Run: ghdb sync") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptCacheError(f"Failed to decode cache file ({self.path}): {e}") from e

        try:
            snapshot = Snapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptCacheError(f"Cache file ({self.path}) has an unexpected shape: {e}") from e

        logger.debug(
            "Loaded snapshot from %s: %d repositories, %d pull requests",
            self.path,
            len(snapshot.repositories),
            len(snapshot.pull_requests),
        )
        self._snapshot = snapshot
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Atomically replace the cache file with the given snapshot."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        logger.info(
            "Saved snapshot to %s: %d repositories, %d pull requests",
            self.path,
            len(snapshot.repositories),
            len(snapshot.pull_requests),
        )
        self._snapshot = snapshot
