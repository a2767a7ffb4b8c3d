"""
ROLEZK Shared Library
=====================

Clearance role proofs: prove a role at or above a threshold without
revealing the exact role or the prover's identity.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - auth: JWT bearer authentication for the HTTP surface
    - database: Redis connection for the shared nullifier store
    - models: Shared Pydantic response models
    - zk: Proof generation, verification and nullifier stores

Version: 0.1.0
"""

__version__ = "0.1.0"

from rolezk.config import settings
from rolezk.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
