"""Exceptions raised across prsync_core.

Two families: ProviderError for failures talking to the hosting provider,
WebhookError for inbound deliveries rejected before reconciliation starts.
"""

from __future__ import annotations


class PrsyncError(Exception):
    """Base class for prsync errors."""


class ProviderError(PrsyncError):
    """A call to the hosting provider failed."""


class CommentNotFoundError(ProviderError):
    """The target comment no longer exists or is not accessible."""


class ListingError(ProviderError):
    """The files of a pull request could not be enumerated."""


class WebhookError(PrsyncError):
    """An inbound delivery was rejected."""


class SignatureError(WebhookError):
    """The delivery signature is missing or does not match the payload."""


class InvalidPayloadError(WebhookError):
    """The delivery body is not a well-formed event of the declared type."""
