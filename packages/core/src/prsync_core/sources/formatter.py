"""Markdown rendering of review text posted as file comments."""

from __future__ import annotations

from prsync_core.models import FileReview

_SHA_MARKER = "<!-- prsync-sha: {sha} -->"


def format_review(review: FileReview) -> str:
    """Render a FileReview as GitHub-flavoured Markdown with alert callouts."""
    sections = [
        "### File Review",
        f"> [!NOTE]\n> **Summary:**\n\n{review.summary.strip()}",
    ]
    if review.security.strip():
        sections.append(f"> [!CAUTION]\n> **Security:**\n\n{review.security.strip()}")
    if review.best_practices.strip():
        sections.append(f"> [!IMPORTANT]\n> **Best Practices:**\n\n{review.best_practices.strip()}")
    return "\n\n".join(sections)


def render_comment(text: str, content_hash: str) -> str:
    """Append the hidden marker recording which blob the comment describes."""
    return f"{text.rstrip()}\n\n{_SHA_MARKER.format(sha=content_hash)}"
