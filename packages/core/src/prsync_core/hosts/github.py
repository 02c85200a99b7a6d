"""GitHub implementation of ReviewHostClient, built on PyGithub."""

from __future__ import annotations

import logging

import requests
from github import Auth, Github, GithubException, UnknownObjectException

from prsync_core.errors import CommentNotFoundError, ListingError, ProviderError
from prsync_core.hosts.base import ReviewHostClient
from prsync_core.models import ChangedFile

logger = logging.getLogger(__name__)


class GitHubClient(ReviewHostClient):
    provider = "github"

    def __init__(self, owner: str, repo: str, token: str | None = None, gh: Github | None = None):
        super().__init__(owner, repo)
        if gh is None:
            gh = Github(auth=Auth.Token(token)) if token else Github()
        self._gh = gh
        self._repo_obj = None
        self._pulls: dict[int, object] = {}

    def _repository(self):
        if self._repo_obj is None:
            self._repo_obj = self._gh.get_repo(f"{self.owner}/{self.repo}")
        return self._repo_obj

    def _pull(self, pr_number: int):
        if pr_number not in self._pulls:
            self._pulls[pr_number] = self._repository().get_pull(pr_number)
        return self._pulls[pr_number]

    def list_files(self, pr_number: int) -> list[ChangedFile]:
        try:
            files = [
                ChangedFile(
                    path=f.filename,
                    content_hash=f.sha,
                    status=f.status,
                    additions=f.additions,
                    deletions=f.deletions,
                    changes=f.changes,
                )
                for f in self._pull(pr_number).get_files()
            ]
        except GithubException as e:
            raise ListingError(f"Could not list files of {self.owner}/{self.repo}#{pr_number}: {e}") from e
        except requests.RequestException as e:
            raise ListingError(
                f"Could not reach GitHub to list files of {self.owner}/{self.repo}#{pr_number}: {e}"
            ) from e
        logger.debug("Listed %d file(s) for %s/%s#%d", len(files), self.owner, self.repo, pr_number)
        return files

    def create_file_comment(self, pr_number: int, body: str, commit_sha: str, path: str) -> str:
        logger.debug("Posting file-level comment for %s at %s", path, commit_sha[:7])
        try:
            commit = self._repository().get_commit(commit_sha)
            comment = self._pull(pr_number).create_review_comment(body, commit, path, subject_type="file")
        except GithubException as e:
            raise ProviderError(f"Could not comment on {path} in {self.owner}/{self.repo}#{pr_number}: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(f"Could not reach GitHub to comment on {path}: {e}") from e
        return str(comment.id)

    def update_comment(self, comment_id: str, body: str) -> None:
        try:
            self._get_comment(comment_id).edit(body)
        except UnknownObjectException as e:
            raise CommentNotFoundError(f"Comment {comment_id} no longer exists") from e
        except GithubException as e:
            if e.status in (403, 404, 410):
                raise CommentNotFoundError(f"Comment {comment_id} is not accessible ({e.status})") from e
            raise ProviderError(f"Could not update comment {comment_id}: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(f"Could not reach GitHub to update comment {comment_id}: {e}") from e

    def delete_comment(self, comment_id: str) -> None:
        try:
            self._get_comment(comment_id).delete()
        except UnknownObjectException as e:
            raise CommentNotFoundError(f"Comment {comment_id} no longer exists") from e
        except GithubException as e:
            raise ProviderError(f"Could not delete comment {comment_id}: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(f"Could not reach GitHub to delete comment {comment_id}: {e}") from e

    def get_head_sha(self, pr_number: int) -> str:
        try:
            return self._pull(pr_number).head.sha
        except GithubException as e:
            raise ProviderError(f"Pull request {self.owner}/{self.repo}#{pr_number} not found: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(f"Could not reach GitHub for {self.owner}/{self.repo}#{pr_number}: {e}") from e

    def get_file_content(self, path: str, ref: str) -> str:
        try:
            contents = self._repository().get_contents(path, ref=ref)
        except GithubException as e:
            raise ProviderError(f"Could not fetch {path}@{ref[:7]}: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(f"Could not reach GitHub to fetch {path}@{ref[:7]}: {e}") from e
        return contents.decoded_content.decode("utf-8", errors="replace")

    def _get_comment(self, comment_id: str):
        try:
            numeric_id = int(comment_id)
        except (TypeError, ValueError):
            raise CommentNotFoundError(f"Malformed comment id: {comment_id!r}")
        return self._repository().get_pulls_comment(numeric_id)
