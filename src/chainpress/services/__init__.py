"""Business logic services for the chainpress service."""

from .auth_session import AuthSessionManager
from .challenge import ChallengeMessage
from .content_integrity import ContentIntegrityService
from .digest import DigestEngine
from .nonce_store import NonceStore
from .pinning import PinningClient
from .signature import SignatureVerifier

__all__ = [
    "AuthSessionManager",
    "ChallengeMessage",
    "ContentIntegrityService",
    "DigestEngine",
    "NonceStore",
    "PinningClient",
    "SignatureVerifier",
]
