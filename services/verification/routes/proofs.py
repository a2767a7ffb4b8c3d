"""
Role Proof Generation Routes
============================

API endpoints for generating clearance role proofs.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rolezk.auth import User, get_current_user
from rolezk.logging import get_logger
from rolezk.zk import RoleProver, TokenClearanceLookup
from services.verification.dependencies import get_role_prover


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class RoleProofRequest(BaseModel):
    """Request to generate a role proof."""

    min_clearance: int = Field(..., ge=1, description="Clearance threshold to prove")

    model_config = {
        "json_schema_extra": {
            "examples": [{"min_clearance": 2}]
        }
    }


class RoleProofResponse(BaseModel):
    """Response containing a generated proof in wire form."""

    success: bool = True
    proof_id: str
    proof: dict[str, Any]


# ============================================================================
# Proof Generation Endpoints
# ============================================================================


@router.post("/role", response_model=RoleProofResponse)
async def generate_role_proof(
    request: RoleProofRequest,
    user: Annotated[User, Depends(get_current_user)],
    prover: Annotated[RoleProver, Depends(get_role_prover)],
) -> RoleProofResponse:
    """
    Generate a proof that the caller's clearance meets a threshold.

    The caller is identified by the bearer token; its role claims decide
    the clearance. The proof reveals neither.

    Args:
        request: Threshold to prove

    Returns:
        RoleProofResponse containing the wire-format proof

    Refusals and failures propagate as RoleProofError and are rendered
    by the application's error handler.
    """
    logger.info("generating_role_proof", min_clearance=request.min_clearance)

    proof = await prover.prove_for_owner(
        owner_id=user.id,
        min_clearance=request.min_clearance,
        lookup=TokenClearanceLookup(user.id, user.roles, prover.policy),
    )

    return RoleProofResponse(proof_id=proof.proof_id, proof=proof.to_wire())
