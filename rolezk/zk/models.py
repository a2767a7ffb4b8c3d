"""
Role Proof Data Models
======================

Pydantic models for clearance role proofs, nullifier records and
verification results.

Wire format:
    All digest fields are lowercase hex strings of exactly 64 characters.
    ``statement`` is the ASCII string ``clearance>=<int>`` and
    ``timestamp`` is an ISO-8601 UTC string.

Version: 1.0.0
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DIGEST_HEX_LENGTH = 64
STATEMENT_PREFIX = "clearance>="


def render_statement(min_clearance: int) -> str:
    """Canonical statement for a clearance threshold."""
    return f"{STATEMENT_PREFIX}{min_clearance}"


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class RejectionReason(str, Enum):
    """Why a proof was rejected. Diagnostic only, never an access decision."""

    PROOF_EXPIRED = "proof_expired"
    INVALID_CHALLENGE_FORMAT = "invalid_challenge_format"
    INVALID_RESPONSE_FORMAT = "invalid_response_format"
    MALFORMED_TRANSCRIPT = "malformed_transcript"
    STATEMENT_MISMATCH = "statement_mismatch"
    TRANSCRIPT_MISMATCH = "transcript_mismatch"
    NULLIFIER_REUSED = "nullifier_reused"
    NULLIFIER_UNKNOWN = "nullifier_unknown"
    NULLIFIER_EXPIRED = "nullifier_expired"
    STORE_UNAVAILABLE = "store_unavailable"
    MALFORMED_PROOF = "malformed_proof"
    INTERNAL_VERIFICATION_ERROR = "internal_verification_error"


class ReserveStatus(str, Enum):
    """Outcome of reserving a nullifier."""

    OK = "ok"
    ALREADY_EXISTS = "already_exists"


class SpendStatus(str, Enum):
    """Outcome of an atomic check-and-spend on a nullifier."""

    OK = "ok"
    ALREADY_SPENT = "already_spent"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class KeyPair:
    """Ephemeral key pair. Only ``public_key`` enters the protocol."""

    public_key: bytes
    private_key: bytes = field(repr=False)


class RoleProof(BaseModel):
    """
    A non-interactive proof that the prover holds clearance >= min_clearance.

    Immutable once created. Fields are plain strings so that malformed
    wire input reaches the verifier's format checks instead of failing
    at construction.
    """

    model_config = ConfigDict(frozen=True)

    proof_id: str = Field(..., description="Opaque unique identifier")
    commitment: str = Field(..., description="Hash(pk || r), hex")
    challenge: str = Field(..., description="Hash(commitment || statement || nonce), hex")
    response: str = Field(..., description="Hash(r XOR challenge), hex")
    public_key_commitment: str = Field(..., description="Hash(pk), hex")
    nullifier: str = Field(..., description="Hash(pk || nonce), hex")
    statement: str = Field(..., description="clearance>=N")
    min_clearance: int = Field(..., description="Claimed threshold N")
    timestamp: datetime = Field(..., description="Creation time (UTC)")
    algorithm: str = Field(..., description="Version/algorithm tag")

    @field_validator("timestamp")
    @classmethod
    def timestamp_to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict with an ISO-8601 UTC timestamp."""
        data = self.model_dump()
        data["timestamp"] = self.timestamp.isoformat().replace("+00:00", "Z")
        return data

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "RoleProof":
        """Parse a wire dict."""
        return cls.model_validate(dict(data))


class NullifierRecord(BaseModel):
    """Single-use reservation backing a proof's nullifier."""

    nullifier_hash: str
    proof_id: str
    owner_id: str
    transcript_digest: str
    algorithm: str | None = None
    created_at: datetime
    expires_at: datetime
    spent: bool = False
    spent_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return as_utc(now) > as_utc(self.expires_at)


class VerificationResult(BaseModel):
    """Result of verifying a role proof."""

    valid: bool
    statement_satisfied: bool = False
    nullifier_fresh: bool = False
    proof_id: str | None = None
    rejection_reason: RejectionReason | None = None
    detail: str | None = None
    verification_time_ms: float = Field(..., ge=0)
    verified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
