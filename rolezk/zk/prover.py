"""
Role Proof Generation
=====================

Non-interactive proof that the owner holds clearance >= a threshold,
without revealing the exact level or the owner's identity.

Construction (Fiat-Shamir, SHA-256 throughout):
    commitment = H(pk || r)                      r: 32 random bytes
    statement  = "clearance>=N"
    challenge  = H(commitment || statement || nonce)   nonce: 16 random bytes
    response   = H(r XOR challenge)
    pk_commit  = H(pk)
    nullifier  = H(pk || nonce)

The nullifier is reserved in the nullifier store before the proof is
returned, together with a digest of the public transcript.

Version: 1.0.0
"""

import inspect
import time
import uuid
from collections.abc import Awaitable

from rolezk.config import ProofSettings, settings
from rolezk.logging import get_logger
from rolezk.zk.clearance import ClearanceLookup, ClearancePolicy
from rolezk.zk.crypto import (
    BLINDING_SIZE,
    NONCE_SIZE,
    Clock,
    RandomSource,
    sha256,
    system_random,
    transcript_digest,
    utc_now,
    xor_bytes,
)
from rolezk.zk.errors import (
    InsufficientClearanceError,
    ProofGenerationError,
)
from rolezk.zk.keys import Ed25519KeyProvider, KeyMaterialProvider
from rolezk.zk.models import KeyPair, ReserveStatus, RoleProof
from rolezk.zk.nullifiers import NullifierStore, call_with_timeout, get_nullifier_store


logger = get_logger(__name__)


class RoleProver:
    """
    Clearance role proof generator.

    Usage:
        prover = RoleProver()

        proof = await prover.generate(
            owner_clearance=3,
            min_clearance=2,
            owner_id="user-123",
        )
    """

    def __init__(
        self,
        store: NullifierStore | None = None,
        policy: ClearancePolicy | None = None,
        key_provider: KeyMaterialProvider | None = None,
        config: ProofSettings | None = None,
        rng: RandomSource = system_random,
        clock: Clock = utc_now,
    ):
        """
        Initialize the prover.

        Args:
            store: Nullifier store. Defaults to the configured global store.
            policy: Clearance table. Defaults to settings.
            key_provider: Ephemeral key source. Defaults to Ed25519.
            config: Proof settings (validity window, TTL, algorithm tag).
            rng: Cryptographically secure byte source.
            clock: UTC clock.
        """
        self.store = store if store is not None else get_nullifier_store()
        self.policy = policy or ClearancePolicy.from_settings()
        self.key_provider = key_provider or Ed25519KeyProvider()
        self.config = config or settings.proof
        self._rng = rng
        self._clock = clock

    def _draw(self, size: int) -> bytes:
        value = self._rng(size)
        if len(value) != size:
            raise ProofGenerationError(f"Random source returned {len(value)} bytes, expected {size}")
        return value

    def _new_proof_id(self) -> str:
        return str(uuid.UUID(bytes=self._draw(16), version=4))

    async def generate(
        self,
        owner_clearance: int,
        min_clearance: int,
        owner_id: str,
        key_pair: KeyPair | None = None,
    ) -> RoleProof:
        """
        Generate a proof that owner_clearance >= min_clearance.

        Args:
            owner_clearance: The owner's actual level (never disclosed)
            min_clearance: Threshold to prove, 1 <= N <= max level
            owner_id: Owner identifier, recorded only in the nullifier store
            key_pair: Optional ephemeral key pair; drawn from the provider if omitted

        Returns:
            RoleProof

        Raises:
            InvalidClearanceError: If min_clearance is outside the configured range
            InsufficientClearanceError: If owner_clearance < min_clearance
            ProofGenerationError: If randomness, key material or the store fail
        """
        self.policy.require_valid_threshold(min_clearance)

        # Nothing cryptographic exists before this check.
        if owner_clearance < min_clearance:
            logger.info("role_proof_refused", min_clearance=min_clearance)
            raise InsufficientClearanceError(min_clearance)

        start_time = time.perf_counter()

        try:
            if key_pair is None:
                key_pair = self.key_provider.generate_ephemeral_key_pair()
            public_key = key_pair.public_key

            blinding = self._draw(BLINDING_SIZE)
            commitment = sha256(public_key, blinding)

            statement = self.policy.statement_for(min_clearance)
            nonce = self._draw(NONCE_SIZE)

            challenge = sha256(commitment, statement.encode("ascii"), nonce)
            response = sha256(xor_bytes(blinding, challenge[:BLINDING_SIZE]))

            public_key_commitment = sha256(public_key)
            nullifier = sha256(public_key, nonce)

            proof_id = self._new_proof_id()
            timestamp = self._clock()
        except ProofGenerationError:
            raise
        except Exception as e:
            logger.error("role_proof_material_failed", error=str(e), error_type=type(e).__name__)
            raise ProofGenerationError(f"Proof material generation failed: {e}") from e

        proof = RoleProof(
            proof_id=proof_id,
            commitment=commitment.hex(),
            challenge=challenge.hex(),
            response=response.hex(),
            public_key_commitment=public_key_commitment.hex(),
            nullifier=nullifier.hex(),
            statement=statement,
            min_clearance=min_clearance,
            timestamp=timestamp,
            algorithm=self.config.algorithm,
        )

        digest = transcript_digest(
            proof.response,
            proof.challenge,
            proof.commitment,
            proof.public_key_commitment,
            proof.statement,
        )

        try:
            status = await call_with_timeout(
                self.store.reserve(
                    proof.nullifier,
                    proof.proof_id,
                    owner_id,
                    digest,
                    ttl_seconds=self.config.nullifier_ttl_seconds,
                    algorithm=proof.algorithm,
                ),
                self.config.store_timeout_seconds,
            )
        # Timeouts surface as StoreUnavailableError; every reservation fault is a generation failure.
        except Exception as e:
            logger.error(
                "role_proof_reservation_failed",
                proof_id=proof.proof_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProofGenerationError(f"Nullifier reservation failed: {e}") from e

        if status != ReserveStatus.OK:
            raise ProofGenerationError("Nullifier collision; retry with fresh randomness")

        logger.info(
            "role_proof_generated",
            proof_id=proof.proof_id,
            min_clearance=min_clearance,
            nullifier=proof.nullifier,
            proving_time_ms=round((time.perf_counter() - start_time) * 1000, 3),
        )

        return proof

    async def prove_for_owner(
        self,
        owner_id: str,
        min_clearance: int,
        lookup: ClearanceLookup,
    ) -> RoleProof:
        """
        Look up the owner's clearance and generate a proof.

        The lookup may be synchronous or return an awaitable.
        """
        clearance: int | Awaitable[int] = lookup.get_clearance(owner_id)
        if inspect.isawaitable(clearance):
            clearance = await clearance

        return await self.generate(
            owner_clearance=clearance,
            min_clearance=min_clearance,
            owner_id=owner_id,
        )
