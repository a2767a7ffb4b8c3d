"""
Unit tests for batch verification.
"""

import asyncio

import pytest

from rolezk.zk import BatchVerifier, RejectionReason, VerificationResult, batch_verify_role_proofs


class TestBatchVerifier:
    """Tests for BatchVerifier."""

    @pytest.mark.asyncio
    async def test_empty_batch(self, verifier):
        assert await BatchVerifier(verifier).verify_all([]) == []

    @pytest.mark.asyncio
    async def test_results_in_input_order(self, prover, verifier, clock):
        expired = await prover.generate(3, 1, owner_id="owner-1")
        clock.advance(minutes=61)
        valid = await prover.generate(3, 2, owner_id="owner-1")
        tampered_source = await prover.generate(3, 3, owner_id="owner-1")
        tampered = tampered_source.model_copy(update={"challenge": "XYZ"})

        results = await BatchVerifier(verifier).verify_all([valid, expired, tampered])

        assert [r.proof_id for r in results] == [
            valid.proof_id,
            expired.proof_id,
            tampered.proof_id,
        ]
        assert results[0].valid is True
        assert results[1].rejection_reason == RejectionReason.PROOF_EXPIRED
        assert results[2].rejection_reason == RejectionReason.INVALID_CHALLENGE_FORMAT

    @pytest.mark.asyncio
    async def test_matches_individual_outcomes(self, prover, verifier, store):
        proofs = [await prover.generate(3, (i % 3) + 1, owner_id=f"owner-{i}") for i in range(6)]
        wire = [p.to_wire() for p in proofs]
        wire[2]["statement"] = "clearance>=9"
        wire[4] = {"proof_id": "broken"}

        results = await BatchVerifier(verifier, max_concurrency=2).verify_all(wire)

        assert [r.valid for r in results] == [True, True, False, True, False, True]
        assert results[2].rejection_reason == RejectionReason.STATEMENT_MISMATCH
        assert results[4].rejection_reason == RejectionReason.MALFORMED_PROOF

    @pytest.mark.asyncio
    async def test_duplicate_proof_verifies_once(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        results = await BatchVerifier(verifier).verify_all([proof, proof, proof])

        assert sum(1 for r in results if r.valid) == 1
        assert sum(1 for r in results if r.rejection_reason == RejectionReason.NULLIFIER_REUSED) == 2

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        in_flight = 0
        peak = 0

        class CountingVerifier:
            async def verify(self, proof):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return VerificationResult(valid=True, verification_time_ms=0.0)

        batch = BatchVerifier(CountingVerifier(), max_concurrency=3)
        results = await batch.verify_all([{}] * 10)

        assert len(results) == 10
        assert peak <= 3

    @pytest.mark.asyncio
    async def test_convenience_function(self, prover, verifier):
        proofs = [await prover.generate(2, 1, owner_id="owner-1") for _ in range(3)]

        results = await batch_verify_role_proofs(proofs, verifier)

        assert all(r.valid for r in results)
