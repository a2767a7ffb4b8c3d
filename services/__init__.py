"""
ROLEZK Services
===============

Services:
- verification: clearance role proof generation and verification over HTTP
"""

__all__ = [
    "verification",
]
