"""
Verification Service Routes
===========================

API route handlers for the verification service.
"""

from services.verification.routes import proofs, verification


__all__ = ["proofs", "verification"]
