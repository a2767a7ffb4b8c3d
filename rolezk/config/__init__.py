"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from rolezk.config import settings

    print(settings.environment)
    print(settings.proof.validity_seconds)
"""

from rolezk.config.settings import (
    ClearanceSettings,
    Environment,
    LogLevel,
    ProofSettings,
    Settings,
    StoreBackend,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "StoreBackend",
    "ProofSettings",
    "ClearanceSettings",
]
