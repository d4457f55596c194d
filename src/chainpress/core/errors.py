"""Error taxonomy for wallet sign-in and content integrity."""

from __future__ import annotations


class ChainpressError(Exception):
    """Base class for all domain errors."""


class InvalidAddressError(ChainpressError, ValueError):
    """Raised when a wallet address is not ``0x`` followed by 40 hex characters."""


class RateLimitedError(ChainpressError):
    """Raised when a challenge is requested again inside the issuance interval."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(f"Challenge requested too soon; retry in {retry_after}s")
        self.retry_after = retry_after


class UnauthorizedError(ChainpressError):
    """An authentication gate failed.

    ``public_message`` is the only text that may leave the service. ``reason``
    names the exact sub-check and is meant for logs.
    """

    public_message = "Unauthorized"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NonceMismatchOrExpiredError(UnauthorizedError):
    public_message = "Nonce mismatch or expired"


class MessageFieldMismatchError(UnauthorizedError):
    public_message = "Message mismatch"


class SignatureInvalidError(UnauthorizedError):
    # Collapsed with message mismatches so callers cannot tell the two apart.
    public_message = "Message mismatch"


class SessionInvalidError(UnauthorizedError):
    public_message = "Invalid session"


class IdentityStoreUnavailableError(ChainpressError):
    """Transient failure of the identity or content store; safe to retry."""

    retryable = True


class DigestComputeFailureError(ChainpressError):
    """Raised when a digest cannot be computed or persisted for a save."""


class ContentNotFoundError(ChainpressError):
    """Raised when a content id does not resolve to a post."""

    def __init__(self, content_id: int) -> None:
        super().__init__(f"Post {content_id} not found")
        self.content_id = content_id


class PinningError(ChainpressError):
    """Raised when the IPFS pinning provider fails."""


class PinningDisabledError(PinningError):
    """Raised when pinning is attempted without provider credentials."""
