"""
Verification Service
====================

Clearance role proof generation and verification.

This service provides:
- Proof generation for authenticated owners
- Single and batch proof verification with replay protection

Version: 0.1.0
"""

__version__ = "0.1.0"
