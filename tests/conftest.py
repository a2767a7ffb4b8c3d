"""
Test Configuration
==================

Pytest fixtures for rolezk tests.

Clock and randomness are injected so that expiry and replay scenarios
are exactly reproducible.
"""

import os
import random
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["PROOF_STORE_BACKEND"] = "memory"

from rolezk.config import ProofSettings  # noqa: E402
from rolezk.zk import (  # noqa: E402
    ClearancePolicy,
    InMemoryNullifierStore,
    RandomKeyProvider,
    RoleProver,
    RoleVerifier,
    reset_nullifier_store,
    set_nullifier_store,
)


FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


class FixedClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def rng() -> Callable[[int], bytes]:
    """Seeded byte source."""
    return random.Random(1234).randbytes


@pytest.fixture
def policy() -> ClearancePolicy:
    return ClearancePolicy(levels={"user": 1, "moderator": 2, "admin": 3})


@pytest.fixture
def proof_config() -> ProofSettings:
    return ProofSettings(
        validity_seconds=3600,
        nullifier_ttl_seconds=3600,
        store_timeout_seconds=1.0,
        batch_max_concurrency=8,
    )


@pytest.fixture
def store(clock: FixedClock) -> InMemoryNullifierStore:
    return InMemoryNullifierStore(clock=clock)


@pytest.fixture
def prover(
    store: InMemoryNullifierStore,
    policy: ClearancePolicy,
    proof_config: ProofSettings,
    rng: Callable[[int], bytes],
    clock: FixedClock,
) -> RoleProver:
    return RoleProver(
        store=store,
        policy=policy,
        key_provider=RandomKeyProvider(rng),
        config=proof_config,
        rng=rng,
        clock=clock,
    )


@pytest.fixture
def verifier(
    store: InMemoryNullifierStore,
    policy: ClearancePolicy,
    proof_config: ProofSettings,
    clock: FixedClock,
) -> RoleVerifier:
    return RoleVerifier(
        store=store,
        policy=policy,
        config=proof_config,
        clock=clock,
    )


@pytest.fixture
def service_store() -> Generator[InMemoryNullifierStore, None, None]:
    """Install a fresh in-memory store as the global nullifier store."""
    store = InMemoryNullifierStore()
    set_nullifier_store(store)
    yield store
    reset_nullifier_store()


@pytest_asyncio.fixture
async def verification_client(
    service_store: InMemoryNullifierStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Verification Service."""
    from services.verification.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
