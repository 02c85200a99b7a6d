"""File-comment reconciliation.

For every eligible file of a pull request the reconciler compares the host's
current blob hash with the stored FileRecord and does the least work that
keeps one up-to-date comment per file:

    no record              → review, create comment, upsert record
    record, hash unchanged → nothing
    record, hash changed   → review, update comment in place, advance hash
                             (update failed → create a new comment, upsert both)

The store only changes after the matching remote write succeeded, so a
failure anywhere leaves the file hash-mismatched and the next event retries
it naturally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from prsync_core.errors import ProviderError
from prsync_core.models import ChangedFile, PullRequestRef, PullRequestSnapshot
from prsync_core.sources.formatter import render_comment
from prsync_core.utils.paths import build_file_filter
from prsync_store.base import StoreError
from prsync_store.models import FileIdentity

if TYPE_CHECKING:
    from prsync_core.hosts.base import ReviewHostClient
    from prsync_core.sources.base import ContentLoader, ReviewSource
    from prsync_core.utils.paths import FileFilter
    from prsync_store.base import BaseStore

logger = logging.getLogger(__name__)


class FileOutcome(str, Enum):
    FILTERED = "filtered"
    UNCHANGED = "unchanged"
    CREATED = "created"
    UPDATED = "updated"
    RECREATED = "recreated"
    REVIEW_FAILED = "review_failed"
    FAILED = "failed"


@dataclass
class ReconcileSummary:
    """Per-file outcomes of one reconciliation, in processing order."""

    pull_request: PullRequestRef
    outcomes: dict[str, FileOutcome] = field(default_factory=dict)

    def paths(self, outcome: FileOutcome) -> list[str]:
        return [path for path, o in self.outcomes.items() if o is outcome]

    @property
    def remote_writes(self) -> int:
        return sum(
            1 for o in self.outcomes.values() if o in (FileOutcome.CREATED, FileOutcome.UPDATED, FileOutcome.RECREATED)
        )

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes.values() if o in (FileOutcome.REVIEW_FAILED, FileOutcome.FAILED))


class Reconciler:
    def __init__(
        self,
        client: ReviewHostClient,
        store: BaseStore,
        source: ReviewSource,
        file_filter: FileFilter | None = None,
    ):
        self._client = client
        self._store = store
        self._source = source
        self._file_filter = file_filter or (lambda path: True)

    def reconcile(self, pull_request: PullRequestRef) -> ReconcileSummary:
        """List the pull request's files and reconcile them.

        A ListingError propagates untouched: nothing has been written yet and
        the event as a whole should be redelivered.
        """
        files = self._client.list_files(pull_request.number)
        for f in files:
            logger.debug(
                "%s: %s sha=%s status=%s +%d -%d (%d changes)",
                pull_request,
                f.path,
                f.content_hash,
                f.status,
                f.additions,
                f.deletions,
                f.changes,
            )
        return self.reconcile_snapshot(PullRequestSnapshot(pull_request=pull_request, files=tuple(files)))

    def reconcile_snapshot(self, snapshot: PullRequestSnapshot) -> ReconcileSummary:
        summary = ReconcileSummary(pull_request=snapshot.pull_request)
        for changed_file in snapshot.files:
            if not self._file_filter(changed_file.path):
                summary.outcomes[changed_file.path] = FileOutcome.FILTERED
                continue
            try:
                outcome = self._reconcile_file(snapshot.pull_request, changed_file)
            except StoreError as e:
                logger.error("%s: store error for %s: %s", snapshot.pull_request, changed_file.path, e)
                outcome = FileOutcome.FAILED
            except Exception:
                logger.exception("%s: unexpected error reconciling %s", snapshot.pull_request, changed_file.path)
                outcome = FileOutcome.FAILED
            summary.outcomes[changed_file.path] = outcome

        logger.info(
            "%s: %d file(s), %d remote write(s), %d failure(s)",
            snapshot.pull_request,
            len(summary.outcomes),
            summary.remote_writes,
            summary.failures,
        )
        return summary

    def _reconcile_file(self, pull_request: PullRequestRef, changed_file: ChangedFile) -> FileOutcome:
        identity = FileIdentity(
            provider=pull_request.provider,
            owner=pull_request.owner,
            repo=pull_request.repo,
            file_path=changed_file.path,
        )
        record = self._store.find(identity)
        if record is not None and record.content_hash == changed_file.content_hash:
            logger.debug("%s unchanged (sha %s); skipping", identity, changed_file.content_hash)
            return FileOutcome.UNCHANGED

        review = self._source.get_review(changed_file.path)
        if not review.ok:
            logger.warning("%s: review unavailable for %s: %s", pull_request, identity, review.error)
            return FileOutcome.REVIEW_FAILED
        body = render_comment(review.text, changed_file.content_hash)

        if record is None:
            comment_id = self._create(pull_request, changed_file, body)
            if comment_id is None:
                return FileOutcome.FAILED
            self._store.upsert(identity, changed_file.content_hash, comment_id)
            logger.info("%s: created comment %s for %s", pull_request, comment_id, identity)
            return FileOutcome.CREATED

        try:
            self._client.update_comment(record.comment_id, body)
        except ProviderError as e:
            logger.warning(
                "%s: could not update comment %s for %s (%s); posting a new one",
                pull_request,
                record.comment_id,
                identity,
                e,
            )
            comment_id = self._create(pull_request, changed_file, body)
            if comment_id is None:
                return FileOutcome.FAILED
            self._store.upsert(identity, changed_file.content_hash, comment_id)
            logger.info("%s: replaced comment %s with %s for %s", pull_request, record.comment_id, comment_id, identity)
            return FileOutcome.RECREATED

        self._store.update(identity, changed_file.content_hash)
        logger.info("%s: updated comment %s for %s", pull_request, record.comment_id, identity)
        return FileOutcome.UPDATED

    def _create(self, pull_request: PullRequestRef, changed_file: ChangedFile, body: str) -> str | None:
        try:
            return self._client.create_file_comment(
                pull_request.number, body, pull_request.head_sha, changed_file.path
            )
        except ProviderError as e:
            logger.error("%s: could not post comment on %s: %s", pull_request, changed_file.path, e)
            return None


def _get_review_source(config: dict, content_loader: ContentLoader | None = None) -> ReviewSource:
    source = config.get("review_source", "workflow")
    max_chars = config.get("max_chars_per_file", 20000)
    if source == "workflow":
        from prsync_core.sources.workflow import WorkflowReviewSource

        return WorkflowReviewSource(config.get("workflow_url"), timeout=config.get("workflow_timeout", 30.0))
    if source == "mock":
        from prsync_core.sources.mock import MockReviewSource

        return MockReviewSource()
    if source == "anthropic":
        from prsync_core.sources.anthropic import AnthropicReviewSource

        return AnthropicReviewSource(config["anthropic_api_key"], content_loader=content_loader, max_chars=max_chars)
    if source == "openai":
        from prsync_core.sources.openai import OpenAIReviewSource

        return OpenAIReviewSource(config["openai_api_key"], content_loader=content_loader, max_chars=max_chars)
    raise ValueError(f"Unknown review source: {source!r}. Choose 'workflow', 'mock', 'anthropic' or 'openai'.")


def run_reconcile(
    config: dict,
    store: BaseStore,
    pull_request: PullRequestRef,
    client: ReviewHostClient,
) -> ReconcileSummary:
    """Wire the configured review source and file filter, then reconcile once."""

    def load_content(path: str) -> str:
        return client.get_file_content(path, pull_request.head_sha)

    source = _get_review_source(config, content_loader=load_content)
    try:
        reconciler = Reconciler(
            client=client,
            store=store,
            source=source,
            file_filter=build_file_filter(config),
        )
        return reconciler.reconcile(pull_request)
    finally:
        source.close()
