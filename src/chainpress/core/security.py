"""Address normalization, credential minting and password hashing."""

from __future__ import annotations

import re
import secrets

import bcrypt

from chainpress.core.errors import InvalidAddressError

ADDRESS_PATTERN = re.compile(r"^0x[a-f0-9]{40}$")
NONCE_LENGTH = 24
SESSION_TOKEN_LENGTH = 48

_TOKEN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
_BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def normalize_address(raw: str | None) -> str:
    """Return ``raw`` trimmed and lowercased, or raise if it is not an address."""
    candidate = (raw or "").strip().lower()
    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidAddressError("Invalid address")
    return candidate


def is_address(raw: str | None) -> bool:
    try:
        normalize_address(raw)
    except InvalidAddressError:
        return False
    return True


def random_token(length: int) -> str:
    """Return ``length`` alphanumeric characters drawn from ``secrets``.

    62 symbols give ~5.95 bits each, so 24 characters exceed 128 bits.
    """
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_nonce() -> str:
    return random_token(NONCE_LENGTH)


def generate_session_token() -> str:
    return random_token(SESSION_TOKEN_LENGTH)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check ``password`` against a value produced by :func:`hash_password`."""
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        return False
