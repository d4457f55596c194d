"""EIP-191 personal-sign signature recovery."""

from __future__ import annotations

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH_BYTES = 65


def _decode_signature(signature: str | bytes) -> bytes:
    if isinstance(signature, bytes):
        raw = signature
    else:
        cleaned = signature.strip()
        if cleaned[:2].lower() == "0x":
            cleaned = cleaned[2:]
        raw = bytes.fromhex(cleaned)
    if len(raw) != SIGNATURE_LENGTH_BYTES:
        raise ValueError("Signatures must be 65 bytes (r, s, v)")
    return raw


class SignatureVerifier:
    """Recovers the signer of a personal-sign message and compares addresses.

    The signed payload is ``"\\x19Ethereum Signed Message:\\n" + len(message) + message``
    hashed with Keccak-256, which is what wallets produce for ``personal_sign``.
    """

    @staticmethod
    def recover(message: str, signature: str | bytes) -> str:
        """Return the lowercase address that produced ``signature`` over ``message``.

        Raises:
            ValueError: If the signature is malformed or unrecoverable.
        """
        raw = _decode_signature(signature)
        try:
            signer = Account.recover_message(encode_defunct(text=message), signature=raw)
        except Exception as err:  # eth-keys raises its own BadSignature family
            raise ValueError(f"Unrecoverable signature: {err}") from err
        return signer.lower()

    def verify(self, message: str, signature: str | bytes, claimed_address: str) -> bool:
        try:
            recovered = self.recover(message, signature)
        except ValueError as err:
            logger.info("Signature recovery failed for %s: %s", claimed_address, err)
            return False
        if recovered != claimed_address.strip().lower():
            logger.info("Signature signer %s does not match %s", recovered, claimed_address)
            return False
        return True
