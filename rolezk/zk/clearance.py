"""
Clearance Levels
================

The role-to-level table is injected configuration, never compiled into
the engine. Lookups resolve an owner to a level; they are the boundary
to whatever role store the deployment uses.

Usage:
    policy = ClearancePolicy.from_settings()
    lookup = StaticClearanceLookup({"alice": "admin"}, policy)
    level = lookup.get_clearance("alice")   # 3
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rolezk.config.settings import ClearanceSettings
from rolezk.zk.errors import InvalidClearanceError
from rolezk.zk.models import render_statement


@dataclass(frozen=True)
class ClearancePolicy:
    """Ordered role levels plus the role assumed for unknown owners."""

    levels: Mapping[str, int]
    default_role: str = "user"

    def __post_init__(self) -> None:
        # Validation rules live on ClearanceSettings.
        validated = ClearanceSettings(levels=dict(self.levels), default_role=self.default_role)
        object.__setattr__(self, "levels", dict(validated.levels))

    @classmethod
    def from_settings(cls, clearance: ClearanceSettings | None = None) -> "ClearancePolicy":
        if clearance is None:
            from rolezk.config import settings

            clearance = settings.clearance
        return cls(levels=clearance.levels, default_role=clearance.default_role)

    @property
    def min_level(self) -> int:
        return min(self.levels.values())

    @property
    def max_level(self) -> int:
        return max(self.levels.values())

    def is_valid_threshold(self, level: int) -> bool:
        """Thresholds may be any integer in [1, max_level]."""
        return isinstance(level, int) and not isinstance(level, bool) and 1 <= level <= self.max_level

    def require_valid_threshold(self, level: int) -> None:
        if not self.is_valid_threshold(level):
            raise InvalidClearanceError(
                f"Threshold {level!r} outside valid range [1, {self.max_level}]"
            )

    def level_for(self, role: str | None) -> int:
        """Level of ``role``; unknown or missing roles get the default role's level."""
        if role is None or role not in self.levels:
            return self.levels[self.default_role]
        return self.levels[role]

    def highest_level(self, roles: Iterable[str]) -> int:
        """Highest level among ``roles``, or the default when none are known."""
        known = [self.levels[r] for r in roles if r in self.levels]
        return max(known) if known else self.levels[self.default_role]

    def statement_for(self, min_clearance: int) -> str:
        return render_statement(min_clearance)


class ClearanceLookup(ABC):
    """Resolves an owner to a clearance level. Must be side-effect free."""

    @abstractmethod
    def get_clearance(self, owner_id: str) -> int:
        """Return the owner's clearance level (may also be awaitable)."""
        ...


class StaticClearanceLookup(ClearanceLookup):
    """In-memory owner -> role map, for development and tests."""

    def __init__(self, roles: Mapping[str, str], policy: ClearancePolicy):
        self._roles = dict(roles)
        self._policy = policy

    def get_clearance(self, owner_id: str) -> int:
        return self._policy.level_for(self._roles.get(owner_id))


class TokenClearanceLookup(ClearanceLookup):
    """Clearance from the role claims of an already authenticated principal."""

    def __init__(self, owner_id: str, roles: Iterable[str], policy: ClearancePolicy):
        self._owner_id = owner_id
        self._roles = list(roles)
        self._policy = policy

    def get_clearance(self, owner_id: str) -> int:
        if owner_id != self._owner_id:
            # Claims describe a single principal.
            return self._policy.levels[self._policy.default_role]
        return self._policy.highest_level(self._roles)
