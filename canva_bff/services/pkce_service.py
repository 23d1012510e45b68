from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

from canva_bff.models.pkce import PkceChallenge

# PKCE helpers for the outbound authorize/callback exchange with Canva.
#
# The verifier never leaves this process until the token exchange; only the
# challenge travels through the user's browser in the authorize redirect.
# Only S256 is supported. Canva rejects "plain".


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


# 32 bytes of randomness -> 43 chars after base64url, the minimum RFC 7636 allows
def generate_code_verifier() -> str:
    return _b64url(secrets.token_bytes(32))


def compute_code_challenge(code_verifier: str) -> str:
    return _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())


def verify_code_challenge(code_verifier: str, expected_challenge: str) -> bool:
    """Constant-time check that a verifier hashes to the given challenge."""
    return hmac.compare_digest(compute_code_challenge(code_verifier), expected_challenge)


def generate_pkce() -> PkceChallenge:
    verifier = generate_code_verifier()
    return PkceChallenge(verifier=verifier, challenge=compute_code_challenge(verifier))


# opaque value echoed back by Canva on the callback; keys the pending verifier
def generate_state() -> str:
    return secrets.token_urlsafe(32)
