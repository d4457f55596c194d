"""Tests for personal-sign signature recovery."""

from __future__ import annotations

from chainpress.services.signature import SignatureVerifier

MESSAGE = "Sign in with Ethereum\nDomain: example.com\nNonce: n1"


def test_recovers_genuine_signer(wallet) -> None:
    signature = wallet.sign(MESSAGE)
    assert SignatureVerifier.recover(MESSAGE, signature) == wallet.address
    assert SignatureVerifier().verify(MESSAGE, signature, wallet.address) is True


def test_claimed_address_comparison_is_case_insensitive(wallet) -> None:
    signature = wallet.sign(MESSAGE)
    assert SignatureVerifier().verify(MESSAGE, signature, wallet.checksum_address) is True


def test_accepts_signature_without_prefix(wallet) -> None:
    signature = wallet.sign(MESSAGE)
    assert SignatureVerifier().verify(MESSAGE, signature[2:], wallet.address) is True


def test_rejects_other_signer(wallet, other_wallet) -> None:
    signature = other_wallet.sign(MESSAGE)
    assert SignatureVerifier().verify(MESSAGE, signature, wallet.address) is False


def test_rejects_tampered_message(wallet) -> None:
    signature = wallet.sign(MESSAGE)
    assert SignatureVerifier().verify(MESSAGE + " ", signature, wallet.address) is False


def test_rejects_malformed_signatures(wallet) -> None:
    verifier = SignatureVerifier()
    assert verifier.verify(MESSAGE, "0xdeadbeef", wallet.address) is False
    assert verifier.verify(MESSAGE, "not-hex", wallet.address) is False
    assert verifier.verify(MESSAGE, "0x" + "00" * 65, wallet.address) is False
