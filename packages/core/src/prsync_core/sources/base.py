"""Review text sources.

ReviewSource is the contract the reconciler consumes: one call per file,
never raising for ordinary failures. Failures come back as an ERROR outcome
and the reconciler skips the file for this round.

LLMReviewSource implements the Template Method pattern shared by the model
providers:
    get_review() → load file content → _build_system_prompt() + _build_user_prompt()
                 → _call_with_retry() → _call_api()   ← only this differs per provider
                 → _parse() → format_review()
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Callable

from prsync_core.models import FileReview, ReviewOutcome
from prsync_core.sources.formatter import format_review

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 4096
_MAX_CHARS = 20000

ContentLoader = Callable[[str], str]


class ReviewSource(ABC):
    """Produces review text for a file path."""

    @abstractmethod
    def get_review(self, file_path: str) -> ReviewOutcome:
        """Return the review for file_path; errors are reported in the outcome."""

    def close(self) -> None:
        """Release any resources held by the source (HTTP connection pools).

        Default is a no-op so callers can always call close() safely.
        """


class LLMReviewSource(ReviewSource):
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, content_loader: ContentLoader | None = None, max_chars: int = _MAX_CHARS):
        self.content_loader = content_loader
        self.max_chars = max_chars

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def get_review(self, file_path: str) -> ReviewOutcome:
        if self.content_loader is None:
            return ReviewOutcome.failed("No content loader configured")
        try:
            content = self.content_loader(file_path)
        except Exception as e:
            logger.warning("Could not load %s for review: %s", file_path, e)
            return ReviewOutcome.failed(f"Could not load file content: {e}")

        if len(content) > self.max_chars:
            content = content[: self.max_chars] + "\n... [file truncated]"

        raw = self._call_with_retry(self._build_system_prompt(), self._build_user_prompt(file_path, content))
        if raw is None:
            return ReviewOutcome.failed(f"{self.__class__.__name__} API unavailable")
        review = self._parse(raw)
        if review is None:
            return ReviewOutcome.failed("Model response was not a valid review")
        return ReviewOutcome(text=format_review(review))

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Should raise on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    return None
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None

    def _build_system_prompt(self) -> str:
        return """You are a senior reviewer writing one overall review comment for a file in a pull request.
Cover what the file does, any security concerns, and deviations from best practices.
Be concise and actionable. Do not restate the code."""

    def _build_user_prompt(self, file_name: str, file_content: str) -> str:
        return f"""Review `{file_name}`.

## File Content
{file_content}

### Output Format:
Respond with **only** a valid JSON object:

{{
  "summary": "<what the file does, as markdown bullet points>",
  "security": "<security observations, as markdown bullet points>",
  "best_practices": "<concrete improvements, as markdown bullet points>"
}}

Use inline backticks for identifiers. Do not return any text outside the JSON block."""

    def _parse(self, raw: str) -> FileReview | None:
        """Parse the model's raw text response into a FileReview."""
        try:
            # Strip only the outer ```json ... ``` fence, not backticks inside values.
            cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
            cleaned = re.sub(r"\s*```$", "", cleaned.strip())
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning(
                "%s: failed to parse response as JSON: %s",
                self.__class__.__name__,
                raw[:200],
            )
            return None
        if not isinstance(data, dict) or not data.get("summary"):
            logger.warning("%s: response has no summary: %s", self.__class__.__name__, raw[:200])
            return None
        return FileReview(
            summary=str(data["summary"]),
            security=str(data.get("security") or ""),
            best_practices=str(data.get("best_practices") or ""),
        )
