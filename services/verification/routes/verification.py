"""
Role Proof Verification Routes
==============================

API endpoints for verifying clearance role proofs.

A successful verification spends the proof's nullifier, so the same
proof is accepted at most once. Any result other than ``valid: true``
means the proof is rejected; ``rejection_reason`` is diagnostic only.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rolezk.logging import get_logger
from rolezk.zk import BatchVerifier, RoleVerifier, VerificationResult
from services.verification.dependencies import get_batch_verifier, get_role_verifier


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class BatchVerifyRequest(BaseModel):
    """Request to verify multiple proofs."""

    proofs: list[dict[str, Any]] = Field(..., min_length=1, max_length=100)


class BatchVerifyResponse(BaseModel):
    """Response from batch verification, in request order."""

    total: int
    valid: int
    invalid: int
    results: list[VerificationResult]


# ============================================================================
# Verification Endpoints
# ============================================================================


@router.post("/role", response_model=VerificationResult)
async def verify_role_proof(
    proof: dict[str, Any],
    verifier: Annotated[RoleVerifier, Depends(get_role_verifier)],
) -> VerificationResult:
    """
    Verify a single role proof.

    Malformed proofs are answered with a rejected result, not an error.
    """
    return await verifier.verify(proof)


@router.post("/batch", response_model=BatchVerifyResponse)
async def batch_verify_role_proofs(
    request: BatchVerifyRequest,
    batch_verifier: Annotated[BatchVerifier, Depends(get_batch_verifier)],
) -> BatchVerifyResponse:
    """
    Verify multiple role proofs independently.

    Args:
        request: Proofs to verify (max 100)

    Returns:
        One result per proof, in request order
    """
    results = await batch_verifier.verify_all(request.proofs)
    valid_count = sum(1 for r in results if r.valid)

    logger.info(
        "batch_verification_completed",
        total=len(results),
        valid=valid_count,
    )

    return BatchVerifyResponse(
        total=len(results),
        valid=valid_count,
        invalid=len(results) - valid_count,
        results=results,
    )
