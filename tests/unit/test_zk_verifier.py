"""
Unit Tests for Role Proof Verification
======================================

Tests for the ordered verification checks, tamper detection and
single-use nullifiers.

Version: 1.0.0
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from rolezk.config import ProofSettings
from rolezk.zk import (
    InMemoryNullifierStore,
    NullifierStore,
    RejectionReason,
    RoleVerifier,
    StoreUnavailableError,
    verify_role_proof,
)


def flip_hex(value: str, index: int = 0) -> str:
    """Flip the lowest bit of one byte of a hex digest."""
    raw = bytearray(bytes.fromhex(value))
    raw[index] ^= 0x01
    return raw.hex()


class TestValidProofs:
    """Tests for proofs that verify."""

    @pytest.mark.asyncio
    async def test_fresh_proof_verifies(self, prover, verifier, store):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof)

        assert result.valid is True
        assert result.statement_satisfied is True
        assert result.nullifier_fresh is True
        assert result.proof_id == proof.proof_id
        assert result.rejection_reason is None
        assert result.verification_time_ms >= 0

        record = await store.get(proof.nullifier)
        assert record.spent is True

    @pytest.mark.asyncio
    async def test_wire_dict_verifies(self, prover, verifier):
        proof = await prover.generate(2, 2, owner_id="owner-1")

        result = await verifier.verify(proof.to_wire())

        assert result.valid is True

    @pytest.mark.asyncio
    async def test_every_level_at_or_below_clearance(self, prover, verifier):
        for min_clearance in (1, 2, 3):
            proof = await prover.generate(3, min_clearance, owner_id="owner-1")
            assert (await verifier.verify(proof)).valid is True

    @pytest.mark.asyncio
    async def test_convenience_function(self, prover, store):
        proof = await prover.generate(3, 1, owner_id="owner-1")

        result = await verify_role_proof(proof, store=store)

        assert result.valid is True


class TestReplay:
    """Tests for single-use nullifiers."""

    @pytest.mark.asyncio
    async def test_second_verification_rejected(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        first = await verifier.verify(proof)
        second = await verifier.verify(proof)

        assert first.valid is True
        assert second.valid is False
        assert second.rejection_reason == RejectionReason.NULLIFIER_REUSED
        assert second.statement_satisfied is True
        assert second.nullifier_fresh is False

    @pytest.mark.asyncio
    async def test_concurrent_verifications_accept_once(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        results = await asyncio.gather(*(verifier.verify(proof) for _ in range(20)))

        assert sum(1 for r in results if r.valid) == 1
        assert all(
            r.rejection_reason == RejectionReason.NULLIFIER_REUSED
            for r in results
            if not r.valid
        )

    @pytest.mark.asyncio
    async def test_unknown_nullifier(self, prover, policy, proof_config, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        other_verifier = RoleVerifier(
            store=InMemoryNullifierStore(clock=clock),
            policy=policy,
            config=proof_config,
            clock=clock,
        )

        result = await other_verifier.verify(proof)

        assert result.rejection_reason == RejectionReason.NULLIFIER_UNKNOWN

    @pytest.mark.asyncio
    async def test_expired_nullifier(self, prover, store, policy, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        lenient = RoleVerifier(
            store=store,
            policy=policy,
            config=ProofSettings(validity_seconds=7200, nullifier_ttl_seconds=7200),
            clock=clock,
        )
        clock.advance(seconds=3601)

        result = await lenient.verify(proof)

        assert result.rejection_reason == RejectionReason.NULLIFIER_EXPIRED
        assert await store.get(proof.nullifier) is None


class TestExpiry:
    """Tests for the validity window."""

    @pytest.mark.asyncio
    async def test_expired_proof(self, prover, verifier, store, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        clock.advance(seconds=3601)

        result = await verifier.verify(proof)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.PROOF_EXPIRED
        assert result.statement_satisfied is False
        assert (await store.get(proof.nullifier)).spent is False

    @pytest.mark.asyncio
    async def test_window_boundary_is_inclusive(self, prover, verifier, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        clock.advance(seconds=3600)

        result = await verifier.verify(proof)

        assert result.valid is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("minutes,expected_valid", [(59, True), (61, False)])
    async def test_minutes_past_creation(self, prover, verifier, clock, minutes, expected_valid):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        clock.advance(minutes=minutes)

        result = await verifier.verify(proof)

        assert result.valid is expected_valid

    @pytest.mark.asyncio
    async def test_future_timestamp_beyond_window(self, prover, verifier, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        clock.advance(seconds=-3601)

        result = await verifier.verify(proof)

        assert result.rejection_reason == RejectionReason.PROOF_EXPIRED

    @pytest.mark.asyncio
    async def test_expiry_checked_before_format(self, prover, verifier, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        clock.advance(hours=2)

        result = await verifier.verify(proof.model_copy(update={"challenge": "bad"}))

        assert result.rejection_reason == RejectionReason.PROOF_EXPIRED


class TestFormatChecks:
    """Tests for challenge, response and transcript field formats."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        ["", "ab" * 31, "ab" * 33, "zz" * 32],
    )
    async def test_invalid_challenge(self, prover, verifier, value):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={"challenge": value}))

        assert result.rejection_reason == RejectionReason.INVALID_CHALLENGE_FORMAT

    @pytest.mark.asyncio
    async def test_uppercase_challenge_rejected(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(
            proof.model_copy(update={"challenge": proof.challenge.upper()})
        )

        assert result.rejection_reason == RejectionReason.INVALID_CHALLENGE_FORMAT

    @pytest.mark.asyncio
    async def test_invalid_response(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={"response": "00" * 16}))

        assert result.rejection_reason == RejectionReason.INVALID_RESPONSE_FORMAT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["commitment", "public_key_commitment", "nullifier"])
    async def test_malformed_transcript_field(self, prover, verifier, store, field):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={field: "not-hex"}))

        assert result.rejection_reason == RejectionReason.MALFORMED_TRANSCRIPT
        assert (await store.get(proof.nullifier)).spent is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("statement", ["clearance>=2\ud800", "clearance\u22652"])
    async def test_non_ascii_statement(self, prover, verifier, store, statement):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        wire = {**proof.to_wire(), "statement": statement}

        result = await verifier.verify(wire)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.MALFORMED_TRANSCRIPT
        assert (await store.get(proof.nullifier)).spent is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"proof_id": "abc"}, "not-a-proof", None],
    )
    async def test_malformed_wire_input(self, verifier, payload):
        result = await verifier.verify(payload)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.MALFORMED_PROOF

    @pytest.mark.asyncio
    async def test_malformed_wire_keeps_claimed_id(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        wire = proof.to_wire()
        wire["timestamp"] = "yesterday"

        result = await verifier.verify(wire)

        assert result.rejection_reason == RejectionReason.MALFORMED_PROOF
        assert result.proof_id == proof.proof_id


class TestStatementChecks:
    """Tests for the claimed statement."""

    @pytest.mark.asyncio
    async def test_min_clearance_without_statement(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={"min_clearance": 3}))

        assert result.rejection_reason == RejectionReason.STATEMENT_MISMATCH
        assert result.statement_satisfied is False

    @pytest.mark.asyncio
    async def test_threshold_out_of_range(self, prover, verifier):
        proof = await prover.generate(3, 3, owner_id="owner-1")

        result = await verifier.verify(
            proof.model_copy(update={"min_clearance": 4, "statement": "clearance>=4"})
        )

        assert result.rejection_reason == RejectionReason.STATEMENT_MISMATCH

    @pytest.mark.asyncio
    async def test_non_canonical_statement(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={"statement": "clearance>=02"}))

        assert result.rejection_reason == RejectionReason.STATEMENT_MISMATCH


class TestTamperDetection:
    """Tampered copies are rejected and leave the genuine proof usable."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field",
        ["commitment", "challenge", "response", "public_key_commitment"],
    )
    async def test_flipped_digest_field(self, prover, verifier, field):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        tampered = proof.model_copy(update={field: flip_hex(getattr(proof, field), 5)})

        result = await verifier.verify(tampered)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.TRANSCRIPT_MISMATCH
        assert (await verifier.verify(proof)).valid is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["challenge", "response"])
    async def test_every_byte_flip_rejected(self, prover, verifier, field):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        for index in range(32):
            tampered = proof.model_copy(update={field: flip_hex(getattr(proof, field), index)})
            result = await verifier.verify(tampered)
            assert result.rejection_reason == RejectionReason.TRANSCRIPT_MISMATCH, index

        assert (await verifier.verify(proof)).valid is True

    @pytest.mark.asyncio
    async def test_statement_substitution(self, prover, verifier):
        proof = await prover.generate(2, 1, owner_id="owner-1")
        upgraded = proof.model_copy(update={"min_clearance": 2, "statement": "clearance>=2"})

        result = await verifier.verify(upgraded)

        assert result.rejection_reason == RejectionReason.TRANSCRIPT_MISMATCH
        assert (await verifier.verify(proof)).valid is True

    @pytest.mark.asyncio
    async def test_swapped_proof_id(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(proof.model_copy(update={"proof_id": "forged"}))

        assert result.rejection_reason == RejectionReason.TRANSCRIPT_MISMATCH
        assert result.proof_id == "forged"

    @pytest.mark.asyncio
    async def test_flipped_nullifier(self, prover, verifier):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        result = await verifier.verify(
            proof.model_copy(update={"nullifier": flip_hex(proof.nullifier)})
        )

        assert result.rejection_reason == RejectionReason.NULLIFIER_UNKNOWN


class TestStoreFailures:
    """Store outages reject the proof instead of raising."""

    @pytest.mark.asyncio
    async def test_store_unavailable(self, prover, policy, proof_config, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        store = AsyncMock(spec=NullifierStore)
        store.try_spend.side_effect = StoreUnavailableError("connection refused")
        verifier = RoleVerifier(store=store, policy=policy, config=proof_config, clock=clock)

        result = await verifier.verify(proof)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.STORE_UNAVAILABLE
        assert result.statement_satisfied is True
        assert result.nullifier_fresh is False

    @pytest.mark.asyncio
    async def test_store_timeout(self, prover, policy, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")

        async def hang(*args, **kwargs):
            await asyncio.sleep(1)

        store = AsyncMock(spec=NullifierStore)
        store.try_spend.side_effect = hang
        verifier = RoleVerifier(
            store=store,
            policy=policy,
            config=ProofSettings(store_timeout_seconds=0.01),
            clock=clock,
        )

        result = await verifier.verify(proof)

        assert result.rejection_reason == RejectionReason.STORE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unexpected_error(self, prover, policy, proof_config, clock):
        proof = await prover.generate(3, 2, owner_id="owner-1")
        store = AsyncMock(spec=NullifierStore)
        store.try_spend.side_effect = RuntimeError("boom")
        verifier = RoleVerifier(store=store, policy=policy, config=proof_config, clock=clock)

        result = await verifier.verify(proof)

        assert result.valid is False
        assert result.rejection_reason == RejectionReason.INTERNAL_VERIFICATION_ERROR
        assert result.detail == "RuntimeError"
