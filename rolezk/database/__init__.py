"""
Database Module
===============

Async client for the Redis instance that backs the shared nullifier store.

Usage:
    from rolezk.database import RedisClient

    client = RedisClient.get_client()
"""

from rolezk.database.redis import RedisClient


__all__ = [
    "RedisClient",
]
