"""
Ephemeral key material providers.

The proof engine only ever reads the public key bytes. Providers are
interchangeable; the default issues a fresh Ed25519 key pair per proof.
"""

from abc import ABC, abstractmethod

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from rolezk.zk.crypto import RandomSource, system_random
from rolezk.zk.models import KeyPair


class KeyMaterialProvider(ABC):
    """Source of ephemeral key pairs."""

    algorithm: str = "opaque"

    @abstractmethod
    def generate_ephemeral_key_pair(self) -> KeyPair:
        ...


class Ed25519KeyProvider(KeyMaterialProvider):
    """Fresh Ed25519 key pair per proving session (32-byte raw public key)."""

    algorithm = "ed25519"

    def generate_ephemeral_key_pair(self) -> KeyPair:
        private_key = Ed25519PrivateKey.generate()
        return KeyPair(
            public_key=private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
            private_key=private_key.private_bytes(
                Encoding.Raw,
                PrivateFormat.Raw,
                NoEncryption(),
            ),
        )


class RandomKeyProvider(KeyMaterialProvider):
    """
    Opaque random key bytes from an injected RNG.

    Useful with a seeded RNG to make whole proofs reproducible.
    """

    algorithm = "random"

    def __init__(self, rng: RandomSource = system_random, public_key_size: int = 32):
        self._rng = rng
        self._public_key_size = public_key_size

    def generate_ephemeral_key_pair(self) -> KeyPair:
        return KeyPair(
            public_key=self._rng(self._public_key_size),
            private_key=self._rng(32),
        )
