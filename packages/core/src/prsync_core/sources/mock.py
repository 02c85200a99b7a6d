"""MockReviewSource: canned review for local runs (MOCK_AI_REVIEW=true)."""

from __future__ import annotations

import logging

from prsync_core.models import FileReview, ReviewOutcome
from prsync_core.sources.base import ReviewSource
from prsync_core.sources.formatter import format_review

logger = logging.getLogger(__name__)


class MockReviewSource(ReviewSource):
    """Always succeeds with the same structured review, naming the file."""

    def get_review(self, file_path: str) -> ReviewOutcome:
        logger.info("Returning mock review for %s", file_path)
        review = FileReview(
            summary=f"- Mock review for `{file_path}`.",
            security="- No security issues identified.",
            best_practices="- Keep resources indexed by stable keys rather than list positions.",
        )
        return ReviewOutcome(text=format_review(review))
