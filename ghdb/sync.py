"""
Sync orchestration for ghdb.

Runs the repository stream and the pull request stream concurrently,
joins them, and hands one snapshot to the store.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol, Sequence, TypeVar

from .config import Identity
from .errors import GhdbError
from .github import GitHubClient, PullRequest, Repository
from .store import Snapshot, SnapshotStore


T = TypeVar("T")

OP_REPOSITORIES = "list repositories"
OP_PULL_REQUESTS = "search open pull requests"

logger = logging.getLogger(__name__)


class SourceClient(Protocol):
    def list_repositories(self, identity: Identity) -> list[Repository]: ...

    def list_open_pull_requests(self, identity: Identity) -> list[PullRequest]: ...

    def close(self) -> None: ...


class SyncError(GhdbError):
    """A fetch for one identity failed and the sync was aborted."""

    def __init__(self, identity: Identity, operation: str, cause: GhdbError):
        super().__init__(f"Failed to {operation} for {identity}: {cause}")
        self.identity = identity
        self.operation = operation
        self.cause = cause


@dataclass(frozen=True)
class SkippedIdentity:
    """An identity whose fetch failed under continue-on-error."""

    identity: Identity
    operation: str
    error: GhdbError


@dataclass
class SyncResult:
    snapshot: Snapshot
    skipped: list[SkippedIdentity] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.skipped


@dataclass
class _StreamResult:
    items: list = field(default_factory=list)
    skipped: list[SkippedIdentity] = field(default_factory=list)
    error: SyncError | None = None


class SyncOrchestrator:
    """Turns the configured identities into one snapshot."""

    def __init__(
        self,
        store: SnapshotStore,
        client_factory: Callable[[], SourceClient] = GitHubClient,
    ):
        self.store = store
        self.client_factory = client_factory

    def run(self, identities: Sequence[Identity], continue_on_error: bool = False) -> SyncResult:
        """
        Fetch everything for every identity and save the snapshot.

        Args:
            identities: Users and orgs to sync, in output order
            continue_on_error: Skip failing identities instead of aborting

        Returns:
            SyncResult holding the saved snapshot and any skipped identities

        Raises:
            SyncError: An identity failed and continue_on_error is False.
                Nothing is written in that case.
        """
        users = [identity for identity in identities if not identity.is_org]
        skipped_orgs = len(identities) - len(users)
        if skipped_orgs:
            logger.info("Skipping pull request search for %d organization(s)", skipped_orgs)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ghdb-sync") as pool:
            repo_future = pool.submit(
                self._stream,
                identities,
                OP_REPOSITORIES,
                lambda client, identity: client.list_repositories(identity),
                continue_on_error,
            )
            pr_future = pool.submit(
                self._stream,
                users,
                OP_PULL_REQUESTS,
                lambda client, identity: client.list_open_pull_requests(identity),
                continue_on_error,
            )
            repo_result = repo_future.result()
            pr_result = pr_future.result()

        for result in (repo_result, pr_result):
            if result.error is not None:
                raise result.error

        snapshot = Snapshot(
            timestamp=datetime.now(timezone.utc),
            repositories=tuple(repo_result.items),
            pull_requests=tuple(pr_result.items),
        )
        self.store.save(snapshot)

        return SyncResult(snapshot=snapshot, skipped=repo_result.skipped + pr_result.skipped)

    def _stream(
        self,
        identities: Sequence[Identity],
        operation: str,
        fetch: Callable[[SourceClient, Identity], list[T]],
        continue_on_error: bool,
    ) -> _StreamResult:
        """Process identities one at a time with a client owned by this stream."""
        result = _StreamResult()
        client = self.client_factory()
        try:
            for identity in identities:
                logger.debug("Starting %s for %s", operation, identity)
                try:
                    items = fetch(client, identity)
                except GhdbError as e:
                    if not continue_on_error:
                        logger.error("Failed to %s for %s: %s", operation, identity, e)
                        result.error = SyncError(identity, operation, e)
                        return result
                    logger.warning("Skipping %s for %s: %s", operation, identity, e)
                    result.skipped.append(SkippedIdentity(identity, operation, e))
                    continue
                result.items.extend(items)
        finally:
            client.close()
        return result
