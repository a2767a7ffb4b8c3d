"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Nullifier store backend."""

    MEMORY = "memory"
    REDIS = "redis"


DEFAULT_CLEARANCE_LEVELS: dict[str, int] = {
    "user": 1,
    "moderator": 2,
    "admin": 3,
}


class ProofSettings(BaseSettings):
    """
    Role proof engine configuration.

    Generator and verifier deployments must share the same validity
    window and nullifier TTL, otherwise proofs are rejected inconsistently.
    """

    model_config = SettingsConfigDict(env_prefix="PROOF_")

    validity_seconds: int = 3600
    nullifier_ttl_seconds: int = 3600
    algorithm: str = "v1-sha256-fiatshamir"

    store_backend: StoreBackend = StoreBackend.MEMORY
    store_timeout_seconds: float = 2.0
    prune_interval_seconds: float = 60.0

    batch_max_concurrency: int = 32

    @field_validator(
        "validity_seconds",
        "nullifier_ttl_seconds",
        "store_timeout_seconds",
        "prune_interval_seconds",
        "batch_max_concurrency",
    )
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def ttl_covers_validity(self) -> "ProofSettings":
        """A live proof must never outlive its nullifier reservation."""
        if self.nullifier_ttl_seconds < self.validity_seconds:
            raise ValueError(
                f"nullifier_ttl_seconds ({self.nullifier_ttl_seconds}) must be >= "
                f"validity_seconds ({self.validity_seconds})"
            )
        return self


class ClearanceSettings(BaseSettings):
    """Role name to clearance level table."""

    model_config = SettingsConfigDict(env_prefix="CLEARANCE_")

    levels: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_CLEARANCE_LEVELS))
    default_role: str = "user"

    @field_validator("levels")
    @classmethod
    def levels_strictly_increasing(cls, v: dict[str, int]) -> dict[str, int]:
        if not v:
            raise ValueError("at least one clearance level is required")
        previous = 0
        for role, level in v.items():
            if level <= previous:
                raise ValueError(
                    f"clearance levels must be positive and strictly increasing; "
                    f"'{role}'={level} follows {previous}"
                )
            previous = level
        return v

    @model_validator(mode="after")
    def default_role_is_known(self) -> "ClearanceSettings":
        if self.default_role not in self.levels:
            raise ValueError(f"default_role '{self.default_role}' is not a configured level")
        return self


class RedisSettings(BaseSettings):
    """Redis configuration for the nullifier store."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("rolezk_redis_password")
    db: int = 0
    key_prefix: str = "rolezk:nullifier:"

    @property
    def url(self) -> str:
        """Generate Redis connection URL."""
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.db}"


class JWTSettings(BaseSettings):
    """JWT authentication configuration."""

    model_config = SettingsConfigDict(env_prefix="JWT_")

    secret_key: SecretStr = SecretStr("your-jwt-secret-key-min-32-chars-long")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    verification: int = Field(default=8004, alias="VERIFICATION_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Proof engine
    proof: ProofSettings = Field(default_factory=ProofSettings)
    clearance: ClearanceSettings = Field(default_factory=ClearanceSettings)

    # Backing store
    redis: RedisSettings = Field(default_factory=RedisSettings)

    # HTTP surface
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
