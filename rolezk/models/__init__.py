"""
Shared Models
=============

Response models shared by rolezk services.
"""

from rolezk.models.common import ErrorResponse, HealthResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
]
