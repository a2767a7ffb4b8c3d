"""
Role Proof Verification
=======================

Checks run in a fixed order and stop at the first failure:

    1. expiry            now - timestamp within the validity window
    2. format            challenge / response are 32-byte lowercase hex
    3. transcript        every digest field well-formed; transcript digest computed
    4. statement         min_clearance in range, statement canonical
    5. nullifier         atomic check-and-spend against the nullifier store

Limitation:
    The verifier cannot recover the blinding factor from the response, so
    step 3 establishes transcript well-formedness only. It is not a
    zero-knowledge soundness check. Tampering is caught in step 5, where the
    recomputed transcript digest must equal the one recorded when the
    nullifier was reserved; that guarantee rests on the integrity of the
    nullifier store, not on the hash construction.

Verification never raises. Every failure, including unexpected exceptions
and store outages, becomes a VerificationResult with valid=False.

Version: 1.0.0
"""

import time
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from rolezk.config import ProofSettings, settings
from rolezk.logging import get_logger
from rolezk.zk.clearance import ClearancePolicy
from rolezk.zk.crypto import Clock, is_hex_digest, transcript_digest, utc_now
from rolezk.zk.errors import StoreUnavailableError
from rolezk.zk.models import (
    RejectionReason,
    RoleProof,
    SpendStatus,
    VerificationResult,
    as_utc,
)
from rolezk.zk.nullifiers import NullifierStore, call_with_timeout, get_nullifier_store


logger = get_logger(__name__)


_SPEND_REJECTIONS: dict[SpendStatus, RejectionReason] = {
    SpendStatus.ALREADY_SPENT: RejectionReason.NULLIFIER_REUSED,
    SpendStatus.NOT_FOUND: RejectionReason.NULLIFIER_UNKNOWN,
    SpendStatus.EXPIRED: RejectionReason.NULLIFIER_EXPIRED,
    SpendStatus.MISMATCH: RejectionReason.TRANSCRIPT_MISMATCH,
}


def _claimed_proof_id(data: Any) -> str | None:
    if isinstance(data, Mapping) and isinstance(data.get("proof_id"), str):
        return data["proof_id"]
    return None


class _Rejected(Exception):
    """Internal short-circuit carrying the rejection."""

    def __init__(self, reason: RejectionReason, detail: str, statement_satisfied: bool = False):
        self.reason = reason
        self.detail = detail
        self.statement_satisfied = statement_satisfied
        super().__init__(detail)


class RoleVerifier:
    """
    Clearance role proof verifier.

    Usage:
        verifier = RoleVerifier()
        result = await verifier.verify(proof)
        if result.valid:
            ...
    """

    def __init__(
        self,
        store: NullifierStore | None = None,
        policy: ClearancePolicy | None = None,
        config: ProofSettings | None = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize the verifier.

        Args:
            store: Nullifier store shared with the generator
            policy: Clearance table; must match the generator's
            config: Proof settings; validity window must match the generator's
            clock: UTC clock
        """
        self.store = store if store is not None else get_nullifier_store()
        self.policy = policy or ClearancePolicy.from_settings()
        self.config = config or settings.proof
        self._clock = clock

    async def verify(self, proof: RoleProof | Mapping[str, Any]) -> VerificationResult:
        """
        Verify a proof and, on success, spend its nullifier.

        Args:
            proof: A RoleProof or its wire dict

        Returns:
            VerificationResult; only valid=True means the proof was accepted
        """
        start_time = time.perf_counter()
        proof_id: str | None = None

        def elapsed_ms() -> float:
            return round((time.perf_counter() - start_time) * 1000, 3)

        try:
            if not isinstance(proof, RoleProof):
                proof_id = _claimed_proof_id(proof)
                proof = self._parse(proof)
            proof_id = proof.proof_id

            digest = self._check_transcript(proof)
            await self._spend(proof, digest)

        except _Rejected as rejection:
            logger.info(
                "role_proof_rejected",
                proof_id=proof_id,
                reason=rejection.reason.value,
            )
            return VerificationResult(
                valid=False,
                statement_satisfied=rejection.statement_satisfied,
                nullifier_fresh=False,
                proof_id=proof_id,
                rejection_reason=rejection.reason,
                detail=rejection.detail,
                verification_time_ms=elapsed_ms(),
            )
        except Exception as e:
            logger.error(
                "role_proof_verification_error",
                proof_id=proof_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return VerificationResult(
                valid=False,
                proof_id=proof_id,
                rejection_reason=RejectionReason.INTERNAL_VERIFICATION_ERROR,
                detail=type(e).__name__,
                verification_time_ms=elapsed_ms(),
            )

        result = VerificationResult(
            valid=True,
            statement_satisfied=True,
            nullifier_fresh=True,
            proof_id=proof_id,
            verification_time_ms=elapsed_ms(),
        )

        logger.info(
            "role_proof_verified",
            proof_id=proof_id,
            min_clearance=proof.min_clearance,
            verification_time_ms=result.verification_time_ms,
        )

        return result

    def _parse(self, data: Any) -> RoleProof:
        try:
            return RoleProof.from_wire(data)
        except (ValidationError, TypeError, ValueError) as e:
            raise _Rejected(
                RejectionReason.MALFORMED_PROOF,
                "Proof does not match the wire format",
            ) from e

    def _check_transcript(self, proof: RoleProof) -> str:
        """Checks 1-4. Returns the recomputed transcript digest."""
        age = as_utc(self._clock()) - proof.timestamp
        window = timedelta(seconds=self.config.validity_seconds)
        if age > window or age < -window:
            raise _Rejected(
                RejectionReason.PROOF_EXPIRED,
                f"Proof outside validity window ({self.config.validity_seconds}s)",
            )

        if not is_hex_digest(proof.challenge):
            raise _Rejected(
                RejectionReason.INVALID_CHALLENGE_FORMAT,
                "Challenge must be 64 lowercase hex characters",
            )
        if not is_hex_digest(proof.response):
            raise _Rejected(
                RejectionReason.INVALID_RESPONSE_FORMAT,
                "Response must be 64 lowercase hex characters",
            )

        for name in ("commitment", "public_key_commitment", "nullifier"):
            if not is_hex_digest(getattr(proof, name)):
                raise _Rejected(
                    RejectionReason.MALFORMED_TRANSCRIPT,
                    f"{name} must be 64 lowercase hex characters",
                )
        if not proof.statement.isascii():
            raise _Rejected(
                RejectionReason.MALFORMED_TRANSCRIPT,
                "statement must be ASCII",
            )

        digest = transcript_digest(
            proof.response,
            proof.challenge,
            proof.commitment,
            proof.public_key_commitment,
            proof.statement,
        )

        if not self.policy.is_valid_threshold(proof.min_clearance):
            raise _Rejected(
                RejectionReason.STATEMENT_MISMATCH,
                f"min_clearance outside valid range [1, {self.policy.max_level}]",
            )
        if proof.statement != self.policy.statement_for(proof.min_clearance):
            raise _Rejected(
                RejectionReason.STATEMENT_MISMATCH,
                "Statement does not match min_clearance",
            )

        return digest

    async def _spend(self, proof: RoleProof, digest: str) -> None:
        """Check 5: atomic check-and-spend."""
        try:
            status = await call_with_timeout(
                self.store.try_spend(proof.nullifier, proof.proof_id, digest),
                self.config.store_timeout_seconds,
            )
        except StoreUnavailableError as e:
            logger.warning("nullifier_store_unavailable", proof_id=proof.proof_id, error=str(e))
            raise _Rejected(
                RejectionReason.STORE_UNAVAILABLE,
                "Nullifier store unavailable; proof not accepted",
                statement_satisfied=True,
            ) from e

        if status != SpendStatus.OK:
            raise _Rejected(
                _SPEND_REJECTIONS[status],
                f"Nullifier check failed: {status.value}",
                statement_satisfied=True,
            )


# Convenience functions

async def verify_role_proof(
    proof: RoleProof | Mapping[str, Any],
    store: NullifierStore | None = None,
) -> VerificationResult:
    """
    Verify a role proof against the configured nullifier store.

    Args:
        proof: The proof to verify
        store: Optional store override

    Returns:
        VerificationResult
    """
    verifier = RoleVerifier(store=store)
    return await verifier.verify(proof)
