"""
Clearance Role Proofs
=====================

Prove that a party holds clearance at or above a threshold without
revealing its exact level or identity. Each proof verifies at most once.

Usage:
    from rolezk.zk import RoleProver, RoleVerifier, InMemoryNullifierStore

    store = InMemoryNullifierStore()
    prover = RoleProver(store=store)
    verifier = RoleVerifier(store=store)

    proof = await prover.generate(owner_clearance=3, min_clearance=2, owner_id="user-1")
    result = await verifier.verify(proof)      # valid=True
    result = await verifier.verify(proof)      # nullifier_reused

Version: 1.0.0
"""

from rolezk.zk.batch import BatchVerifier, batch_verify_role_proofs
from rolezk.zk.clearance import (
    ClearanceLookup,
    ClearancePolicy,
    StaticClearanceLookup,
    TokenClearanceLookup,
)
from rolezk.zk.errors import (
    InsufficientClearanceError,
    InvalidClearanceError,
    ProofGenerationError,
    RoleProofError,
    StoreUnavailableError,
)
from rolezk.zk.keys import Ed25519KeyProvider, KeyMaterialProvider, RandomKeyProvider
from rolezk.zk.models import (
    KeyPair,
    NullifierRecord,
    RejectionReason,
    ReserveStatus,
    RoleProof,
    SpendStatus,
    VerificationResult,
)
from rolezk.zk.nullifiers import (
    InMemoryNullifierStore,
    NullifierPruner,
    NullifierStore,
    RedisNullifierStore,
    get_nullifier_store,
    reset_nullifier_store,
    set_nullifier_store,
)
from rolezk.zk.prover import RoleProver
from rolezk.zk.verifier import RoleVerifier, verify_role_proof


__all__ = [
    # Prover
    "RoleProver",
    "KeyMaterialProvider",
    "Ed25519KeyProvider",
    "RandomKeyProvider",
    # Verifier
    "RoleVerifier",
    "verify_role_proof",
    "BatchVerifier",
    "batch_verify_role_proofs",
    # Clearance
    "ClearancePolicy",
    "ClearanceLookup",
    "StaticClearanceLookup",
    "TokenClearanceLookup",
    # Nullifiers
    "NullifierStore",
    "InMemoryNullifierStore",
    "RedisNullifierStore",
    "NullifierPruner",
    "get_nullifier_store",
    "set_nullifier_store",
    "reset_nullifier_store",
    # Models
    "RoleProof",
    "KeyPair",
    "NullifierRecord",
    "VerificationResult",
    "RejectionReason",
    "ReserveStatus",
    "SpendStatus",
    # Errors
    "RoleProofError",
    "InsufficientClearanceError",
    "InvalidClearanceError",
    "ProofGenerationError",
    "StoreUnavailableError",
]
