"""Hosting provider capability interface.

The reconciler is written against ReviewHostClient only, so adding a host
means implementing these methods and registering it in build_host_client().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prsync_core.models import ChangedFile


class ReviewHostClient(ABC):
    """Comment and file-listing operations scoped to one repository."""

    provider: str = ""

    def __init__(self, owner: str, repo: str):
        self.owner = owner
        self.repo = repo

    @abstractmethod
    def list_files(self, pr_number: int) -> list[ChangedFile]:
        """Return every file of the pull request in host order.

        Pagination is handled here; callers see one ordered list.
        Raises ListingError on failure.
        """

    @abstractmethod
    def create_file_comment(self, pr_number: int, body: str, commit_sha: str, path: str) -> str:
        """Post a comment anchored to the whole file and return its id.

        Raises ProviderError on failure.
        """

    @abstractmethod
    def update_comment(self, comment_id: str, body: str) -> None:
        """Replace the body of an existing comment.

        Raises CommentNotFoundError when the comment is gone or inaccessible,
        ProviderError for any other failure.
        """

    @abstractmethod
    def delete_comment(self, comment_id: str) -> None:
        """Delete a comment. Raises CommentNotFoundError / ProviderError."""

    @abstractmethod
    def get_head_sha(self, pr_number: int) -> str:
        """Return the current head commit of the pull request."""

    @abstractmethod
    def get_file_content(self, path: str, ref: str) -> str:
        """Return the text of path at ref."""
