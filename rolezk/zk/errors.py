"""
Role Proof Errors
=================

Exceptions raised by proof generation and by nullifier stores.
Verification never raises; it reports a ``RejectionReason`` instead.
"""


class RoleProofError(Exception):
    """Base class for role proof failures."""

    code = "role_proof_error"


class InsufficientClearanceError(RoleProofError):
    """
    The owner's clearance is below the requested threshold.

    Raised before any cryptographic material exists, so the message
    does not disclose the owner's actual level.
    """

    code = "insufficient_clearance"

    def __init__(self, min_clearance: int):
        self.min_clearance = min_clearance
        super().__init__(f"Clearance insufficient for threshold {min_clearance}")


class InvalidClearanceError(RoleProofError):
    """Requested threshold is outside the configured clearance range."""

    code = "invalid_clearance"


class ProofGenerationError(RoleProofError):
    """RNG, key provider or store failure during generation. Safe to retry."""

    code = "generation_failure"


class StoreUnavailableError(RoleProofError):
    """The nullifier store could not be reached in time."""

    code = "store_unavailable"
