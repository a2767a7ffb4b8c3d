"""
Hashing helpers for the role proof transcript.

All digests are SHA-256.
"""

import hashlib
import re
import secrets
from collections.abc import Callable
from datetime import UTC, datetime


RandomSource = Callable[[int], bytes]
Clock = Callable[[], datetime]

DIGEST_SIZE = 32
BLINDING_SIZE = 32
NONCE_SIZE = 16

_HEX_DIGEST = re.compile(r"[0-9a-f]{64}")


def system_random(n: int) -> bytes:
    return secrets.token_bytes(n)


def utc_now() -> datetime:
    return datetime.now(UTC)


def sha256(*parts: bytes) -> bytes:
    """Hash the concatenation of ``parts``."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part)
    return digest.digest()


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """XOR over the shorter of the two inputs."""
    return bytes(x ^ y for x, y in zip(a, b))


def is_hex_digest(value: object) -> bool:
    """True for a lowercase 64-char hex string (32 bytes)."""
    return isinstance(value, str) and _HEX_DIGEST.fullmatch(value) is not None


def transcript_digest(
    response: str,
    challenge: str,
    commitment: str,
    public_key_commitment: str,
    statement: str,
) -> str:
    """
    Consistency digest over the public transcript.

    This is a well-formedness binding, not a soundness relation: the
    blinding factor cannot be recovered from ``response``, so anyone who
    can read a transcript can recompute this value. It only detects
    tampering when compared with the digest recorded at reservation time.
    """
    return sha256(
        bytes.fromhex(response),
        bytes.fromhex(challenge),
        bytes.fromhex(commitment),
        bytes.fromhex(public_key_commitment),
        statement.encode("ascii"),
    ).hex()
