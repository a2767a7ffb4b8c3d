"""
Batch verification of role proofs.

Each proof is verified independently and concurrently; one result is
returned per input, in input order. No proof's outcome depends on another
except through the shared nullifier store (the same nullifier appearing
twice in a batch verifies at most once).
"""

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Any

from rolezk.config import settings
from rolezk.logging import get_logger
from rolezk.zk.models import RoleProof, VerificationResult
from rolezk.zk.verifier import RoleVerifier


logger = get_logger(__name__)


class BatchVerifier:
    """Fan-out verifier bounded by a concurrency limit."""

    def __init__(
        self,
        verifier: RoleVerifier | None = None,
        max_concurrency: int | None = None,
    ):
        self.verifier = verifier or RoleVerifier()
        self.max_concurrency = max_concurrency or settings.proof.batch_max_concurrency

    async def verify_all(
        self,
        proofs: Sequence[RoleProof | Mapping[str, Any]],
    ) -> list[VerificationResult]:
        """
        Verify every proof; never stops early.

        Args:
            proofs: Proofs or wire dicts

        Returns:
            One VerificationResult per input, same order
        """
        if not proofs:
            return []

        start_time = time.perf_counter()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def verify_one(proof: RoleProof | Mapping[str, Any]) -> VerificationResult:
            async with semaphore:
                return await self.verifier.verify(proof)

        results = await asyncio.gather(*(verify_one(p) for p in proofs))

        logger.info(
            "role_proof_batch_verified",
            total=len(results),
            valid=sum(1 for r in results if r.valid),
            batch_time_ms=round((time.perf_counter() - start_time) * 1000, 3),
        )

        return list(results)


async def batch_verify_role_proofs(
    proofs: Sequence[RoleProof | Mapping[str, Any]],
    verifier: RoleVerifier | None = None,
) -> list[VerificationResult]:
    """Verify a batch of role proofs with the default concurrency limit."""
    return await BatchVerifier(verifier).verify_all(proofs)
