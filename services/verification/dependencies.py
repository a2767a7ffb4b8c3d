"""
Engine Dependencies
===================

FastAPI providers for the prover and verifiers. All of them share the
configured nullifier store; override them in tests with
``app.dependency_overrides``.
"""

from rolezk.zk import BatchVerifier, RoleProver, RoleVerifier, get_nullifier_store


def get_role_prover() -> RoleProver:
    return RoleProver(store=get_nullifier_store())


def get_role_verifier() -> RoleVerifier:
    return RoleVerifier(store=get_nullifier_store())


def get_batch_verifier() -> BatchVerifier:
    return BatchVerifier(get_role_verifier())
