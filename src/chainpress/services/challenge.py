"""Structured sign-in message: building and tolerant parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_PREAMBLE = "Sign in with Ethereum"

_PORT_SUFFIX = re.compile(r":\d+$")

# Each field is located independently so a missing one can be reported on its own.
_DOMAIN_RE = re.compile(r"^[ \t]*Domain[ \t]*:[ \t]*(\S+)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_ADDRESS_RE = re.compile(
    r"^[ \t]*Address[ \t]*:[ \t]*(0x[0-9a-fA-F]{40})[ \t]*$", re.IGNORECASE | re.MULTILINE
)
_CHAIN_ID_RE = re.compile(
    r"^[ \t]*Chain[ \t_-]*ID[ \t]*:[ \t]*([0-9]+)[ \t]*$", re.IGNORECASE | re.MULTILINE
)
_NONCE_RE = re.compile(r"^[ \t]*Nonce[ \t]*:[ \t]*(\S+)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_WHITESPACE = re.compile(r"\s")

FIELD_NAMES = ("domain", "address", "chain_id", "nonce")


def normalize_domain(domain: str) -> str:
    """Lowercase ``domain`` and strip a trailing ``:port``."""
    return _PORT_SUFFIX.sub("", domain.strip().lower())


@dataclass(frozen=True)
class ParsedChallenge:
    """Fields recovered from a sign-in message; absent fields are ``None``."""

    domain: str | None = None
    address: str | None = None
    chain_id: int | None = None
    nonce: str | None = None

    @property
    def missing_fields(self) -> tuple[str, ...]:
        return tuple(name for name in FIELD_NAMES if getattr(self, name) in (None, ""))

    @property
    def complete(self) -> bool:
        return not self.missing_fields


class ChallengeMessage:
    """Builds and parses the four-field sign-in message."""

    def __init__(self, preamble: str | None = DEFAULT_PREAMBLE) -> None:
        self.preamble = preamble

    def build(self, domain: str, address: str, chain_id: int, nonce: str) -> str:
        """Render the message; ``nonce`` is opaque but must be one non-empty token.

        Raises:
            ValueError: If ``nonce`` is empty or contains whitespace.
        """
        if not nonce or _WHITESPACE.search(nonce):
            raise ValueError("Nonce must be a non-empty string without whitespace")
        lines = [
            f"Domain: {normalize_domain(domain)}",
            f"Address: {address.lower()}",
            f"Chain ID: {int(chain_id)}",
            f"Nonce: {nonce}",
        ]
        if self.preamble:
            lines.insert(0, self.preamble)
        return "\n".join(lines)

    @staticmethod
    def parse(text: str | None) -> ParsedChallenge:
        """Extract whatever fields are present; never raises on malformed input."""
        if not text:
            return ParsedChallenge()
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        domain = address = nonce = None
        chain_id: int | None = None
        if match := _DOMAIN_RE.search(text):
            domain = normalize_domain(match.group(1))
        if match := _ADDRESS_RE.search(text):
            address = match.group(1).lower()
        if match := _CHAIN_ID_RE.search(text):
            chain_id = int(match.group(1))
        if match := _NONCE_RE.search(text):
            nonce = match.group(1)
        return ParsedChallenge(domain=domain, address=address, chain_id=chain_id, nonce=nonce)
