"""WorkflowReviewSource: delegates review generation to an external AI workflow engine.

The engine is a plain HTTP endpoint: POST {"filePath": "<path>"} and it
answers {"review": "<markdown>"}. Anything else is an ERROR outcome.
"""

from __future__ import annotations

import logging

import httpx

from prsync_core.models import ReviewOutcome
from prsync_core.sources.base import ReviewSource

logger = logging.getLogger(__name__)


class WorkflowReviewSource(ReviewSource):
    def __init__(self, url: str | None, timeout: float = 30.0, client: httpx.Client | None = None):
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def get_review(self, file_path: str) -> ReviewOutcome:
        if not self.url:
            logger.error("AI_WORKFLOW_URL is not configured; cannot review %s", file_path)
            return ReviewOutcome.failed("AI workflow URL is not configured")

        try:
            response = self._client.post(self.url, json={"filePath": file_path})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("AI workflow request failed for %s: %s", file_path, e)
            return ReviewOutcome.failed(f"AI workflow request failed: {e}")
        except ValueError as e:
            logger.warning("AI workflow returned invalid JSON for %s: %s", file_path, e)
            return ReviewOutcome.failed("AI workflow returned invalid JSON")

        review = data.get("review") if isinstance(data, dict) else None
        if not review or not str(review).strip():
            return ReviewOutcome.failed("AI workflow returned no review")
        return ReviewOutcome(text=str(review))

    def close(self) -> None:
        self._client.close()
