"""Tests for the reconciliation engine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from prsync_core.errors import CommentNotFoundError, ListingError, ProviderError
from prsync_core.hosts.base import ReviewHostClient
from prsync_core.models import ChangedFile, PullRequestRef, PullRequestSnapshot, ReviewOutcome
from prsync_core.reconciler import FileOutcome, Reconciler, _get_review_source, run_reconcile
from prsync_core.sources.base import ReviewSource
from prsync_store.base import StoreError
from prsync_store.memory import MemoryStore
from prsync_store.models import FileIdentity

HEAD = "c" * 40
PR = PullRequestRef(provider="github", owner="acme", repo="infra", number=7, head_sha=HEAD)


def _identity(path="main.tf"):
    return FileIdentity(provider="github", owner="acme", repo="infra", file_path=path)


class FakeHost(ReviewHostClient):
    """In-memory host recording every call, with switchable failures."""

    provider = "github"

    def __init__(self, files=(), fail_update=False, fail_create=False, fail_list=False):
        super().__init__("acme", "infra")
        self.files = list(files)
        self.fail_update = fail_update
        self.fail_create = fail_create
        self.fail_list = fail_list
        self.calls: list[tuple] = []
        self._next_id = 1

    def list_files(self, pr_number):
        self.calls.append(("list_files", pr_number))
        if self.fail_list:
            raise ListingError("listing down")
        return list(self.files)

    def create_file_comment(self, pr_number, body, commit_sha, path):
        self.calls.append(("create", pr_number, commit_sha, path))
        if self.fail_create:
            raise ProviderError("create failed")
        comment_id = f"id{self._next_id}"
        self._next_id += 1
        return comment_id

    def update_comment(self, comment_id, body):
        self.calls.append(("update", comment_id))
        if self.fail_update:
            raise CommentNotFoundError(f"{comment_id} gone")

    def delete_comment(self, comment_id):
        self.calls.append(("delete", comment_id))

    def get_head_sha(self, pr_number):
        return HEAD

    def get_file_content(self, path, ref):
        return "resource {}"

    def writes(self):
        return [c for c in self.calls if c[0] in ("create", "update", "delete")]


class StubSource(ReviewSource):
    def __init__(self, ok=True):
        self.ok = ok
        self.requested: list[str] = []

    def get_review(self, file_path):
        self.requested.append(file_path)
        if not self.ok:
            return ReviewOutcome.failed("text source down")
        return ReviewOutcome(text=f"Review of {file_path}")


def _file(path="main.tf", sha="h1"):
    return ChangedFile(path=path, content_hash=sha)


def _reconciler(host, store=None, source=None, file_filter=None):
    return Reconciler(host, store if store is not None else MemoryStore(), source or StubSource(), file_filter)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_a_first_seen_file_creates_comment_and_record(self):
        store = MemoryStore()
        host = FakeHost([_file(sha="h1")])

        summary = _reconciler(host, store).reconcile(PR)

        assert host.writes() == [("create", 7, HEAD, "main.tf")]
        record = store.find(_identity())
        assert (record.content_hash, record.comment_id) == ("h1", "id1")
        assert summary.outcomes == {"main.tf": FileOutcome.CREATED}

    def test_b_unchanged_hash_does_nothing(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        before = store.find(_identity())
        source = StubSource()
        host = FakeHost([_file(sha="h1")])

        summary = _reconciler(host, store, source).reconcile(PR)

        assert host.writes() == []
        assert source.requested == []
        assert store.find(_identity()) == before
        assert summary.outcomes == {"main.tf": FileOutcome.UNCHANGED}

    def test_c_changed_hash_updates_in_place(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h2")])

        summary = _reconciler(host, store).reconcile(PR)

        assert host.writes() == [("update", "id1")]
        record = store.find(_identity())
        assert (record.content_hash, record.comment_id) == ("h2", "id1")
        assert summary.outcomes == {"main.tf": FileOutcome.UPDATED}

    def test_d_failed_update_falls_back_to_new_comment(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h2")], fail_update=True)
        host._next_id = 2

        summary = _reconciler(host, store).reconcile(PR)

        assert host.writes() == [("update", "id1"), ("create", 7, HEAD, "main.tf")]
        record = store.find(_identity())
        assert (record.content_hash, record.comment_id) == ("h2", "id2")
        assert summary.outcomes == {"main.tf": FileOutcome.RECREATED}


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestProperties:
    def test_second_run_with_same_hashes_is_idempotent(self):
        store = MemoryStore()
        host = FakeHost([_file("a.tf", "h1"), _file("b.tf", "h2")])
        reconciler = _reconciler(host, store)

        reconciler.reconcile(PR)
        writes_after_first = len(host.writes())
        summary = reconciler.reconcile(PR)

        assert writes_after_first == 2
        assert len(host.writes()) == 2
        assert summary.remote_writes == 0

    def test_fallback_never_keeps_old_comment_id(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h2")], fail_update=True)
        host._next_id = 9

        _reconciler(host, store).reconcile(PR)

        assert [c for c in host.calls if c[0] == "create"] == [("create", 7, HEAD, "main.tf")]
        assert store.find(_identity()).comment_id == "id9"

    def test_update_and_create_both_failing_leaves_record_untouched(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        before = store.find(_identity())
        host = FakeHost([_file(sha="h2")], fail_update=True, fail_create=True)

        summary = _reconciler(host, store).reconcile(PR)

        assert store.find(_identity()) == before
        assert summary.outcomes == {"main.tf": FileOutcome.FAILED}

    def test_create_failure_for_new_file_writes_nothing(self):
        store = MemoryStore()
        host = FakeHost([_file()], fail_create=True)

        summary = _reconciler(host, store).reconcile(PR)

        assert store.find(_identity()) is None
        assert summary.outcomes == {"main.tf": FileOutcome.FAILED}

    def test_failed_file_is_retried_on_next_event(self):
        store = MemoryStore()
        host = FakeHost([_file()], fail_create=True)
        reconciler = _reconciler(host, store)

        reconciler.reconcile(PR)
        host.fail_create = False
        summary = reconciler.reconcile(PR)

        assert summary.outcomes == {"main.tf": FileOutcome.CREATED}
        assert store.find(_identity()).content_hash == "h1"

    def test_filtered_file_never_touches_store_or_host(self):
        store = MagicMock(spec=MemoryStore)
        store.find.return_value = None
        source = StubSource()
        host = FakeHost([_file("README.md"), _file("main.tf")])

        summary = _reconciler(host, store, source, file_filter=lambda p: p.endswith(".tf")).reconcile(PR)

        looked_up = [c.args[0].file_path for c in store.find.call_args_list]
        upserted = [c.args[0].file_path for c in store.upsert.call_args_list]
        assert looked_up == ["main.tf"]
        assert upserted == ["main.tf"]
        assert source.requested == ["main.tf"]
        assert all(c[-1] != "README.md" for c in host.writes())
        assert summary.outcomes["README.md"] is FileOutcome.FILTERED

    def test_files_processed_in_host_order(self):
        source = StubSource()
        host = FakeHost([_file("z.tf"), _file("a.tf"), _file("m.tf")])

        summary = _reconciler(host, source=source).reconcile(PR)

        assert source.requested == ["z.tf", "a.tf", "m.tf"]
        assert list(summary.outcomes) == ["z.tf", "a.tf", "m.tf"]


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


class TestFailures:
    def test_listing_failure_propagates_without_writes(self):
        store = MagicMock(spec=MemoryStore)
        host = FakeHost(fail_list=True)

        with pytest.raises(ListingError):
            _reconciler(host, store).reconcile(PR)

        store.find.assert_not_called()
        store.upsert.assert_not_called()

    def test_review_failure_skips_file_without_writes(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        before = store.find(_identity())
        host = FakeHost([_file(sha="h2"), _file("new.tf", "h3")])

        summary = _reconciler(host, store, StubSource(ok=False)).reconcile(PR)

        assert host.writes() == []
        assert store.find(_identity()) == before
        assert store.find(_identity("new.tf")) is None
        assert summary.paths(FileOutcome.REVIEW_FAILED) == ["main.tf", "new.tf"]

    def test_store_error_on_one_file_does_not_stop_the_rest(self):
        store = MagicMock(spec=MemoryStore)
        store.find.side_effect = [StoreError("db locked"), None]
        host = FakeHost([_file("a.tf"), _file("b.tf")])

        summary = _reconciler(host, store).reconcile(PR)

        assert summary.outcomes == {"a.tf": FileOutcome.FAILED, "b.tf": FileOutcome.CREATED}

    def test_unexpected_error_is_isolated_per_file(self):
        source = MagicMock(spec=ReviewSource)
        source.get_review.side_effect = [RuntimeError("boom"), ReviewOutcome(text="ok")]
        host = FakeHost([_file("a.tf"), _file("b.tf")])

        summary = _reconciler(host, source=source).reconcile(PR)

        assert summary.outcomes == {"a.tf": FileOutcome.FAILED, "b.tf": FileOutcome.CREATED}
        assert summary.failures == 1

    def test_generic_provider_error_on_update_also_falls_back(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h2")])
        host.update_comment = MagicMock(side_effect=ProviderError("502"))
        host._next_id = 5

        summary = _reconciler(host, store).reconcile(PR)

        assert summary.outcomes == {"main.tf": FileOutcome.RECREATED}
        assert store.find(_identity()).comment_id == "id5"


# ---------------------------------------------------------------------------
# Force-push: the head sha moves, blobs may not
# ---------------------------------------------------------------------------


class TestForcePush:
    def test_rewritten_history_with_same_blob_is_a_no_op(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h1")])
        rewritten = PullRequestRef("github", "acme", "infra", 7, "d" * 40)

        summary = _reconciler(host, store).reconcile(rewritten)

        assert host.writes() == []
        assert summary.outcomes == {"main.tf": FileOutcome.UNCHANGED}

    def test_new_comment_after_force_push_anchors_at_new_head(self):
        store = MemoryStore()
        store.upsert(_identity(), "h1", "id1")
        host = FakeHost([_file(sha="h2")], fail_update=True)
        new_head = "d" * 40

        _reconciler(host, store).reconcile(PullRequestRef("github", "acme", "infra", 7, new_head))

        assert ("create", 7, new_head, "main.tf") in host.calls


class TestCommentBody:
    def test_body_carries_review_text_and_sha_marker(self):
        host = FakeHost([_file(sha="h1")])
        host.create_file_comment = MagicMock(return_value="id1")

        _reconciler(host).reconcile(PR)

        body = host.create_file_comment.call_args.args[1]
        assert "Review of main.tf" in body
        assert "<!-- prsync-sha: h1 -->" in body


class TestReconcileSnapshot:
    def test_snapshot_is_used_as_given(self):
        host = FakeHost()
        snapshot = PullRequestSnapshot(pull_request=PR, files=(_file("x.tf"),))

        summary = _reconciler(host).reconcile_snapshot(snapshot)

        assert ("list_files", 7) not in host.calls
        assert summary.outcomes == {"x.tf": FileOutcome.CREATED}


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


class TestGetReviewSource:
    def test_workflow_source(self):
        from prsync_core.sources.workflow import WorkflowReviewSource

        source = _get_review_source({"review_source": "workflow", "workflow_url": "http://ai/review"})
        assert isinstance(source, WorkflowReviewSource)
        assert source.url == "http://ai/review"

    def test_mock_source(self):
        from prsync_core.sources.mock import MockReviewSource

        assert isinstance(_get_review_source({"review_source": "mock"}), MockReviewSource)

    def test_unknown_source_raises(self):
        with pytest.raises(ValueError, match="Unknown review source"):
            _get_review_source({"review_source": "oracle"})


class TestRunReconcile:
    def test_applies_configured_filter(self):
        store = MemoryStore()
        host = FakeHost([_file("main.tf"), _file("notes.md"), _file("logo.png")])
        config = {"review_source": "mock", "include": [".tf", ".md"], "exclude": ["*.md"]}

        summary = run_reconcile(config, store, PR, host)

        assert summary.outcomes == {
            "main.tf": FileOutcome.CREATED,
            "notes.md": FileOutcome.FILTERED,
            "logo.png": FileOutcome.FILTERED,
        }

    def test_closes_workflow_http_client(self, mocker):
        client_cls = mocker.patch("prsync_core.sources.workflow.httpx.Client")
        client_cls.return_value.post.return_value.json.return_value = {"review": "Looks fine."}
        host = FakeHost([_file("main.tf")])
        config = {"review_source": "workflow", "workflow_url": "http://ai/review"}

        for _ in range(3):
            run_reconcile(config, MemoryStore(), PR, host)

        assert client_cls.call_count == 3
        assert client_cls.return_value.close.call_count == 3

    def test_closes_source_when_listing_fails(self, mocker):
        client_cls = mocker.patch("prsync_core.sources.workflow.httpx.Client")
        config = {"review_source": "workflow", "workflow_url": "http://ai/review"}

        with pytest.raises(ListingError):
            run_reconcile(config, MemoryStore(), PR, FakeHost(fail_list=True))

        client_cls.return_value.close.assert_called_once()
