"""
Player domain model.
"""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    """Primary raid role. Fixed per player for one optimization run."""

    TANK = "tank"
    HEALER = "healer"
    DPS = "dps"


class PlayerStatus(Enum):
    """Eligibility status of a signup."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    LATE = "late"
    BENCHED = "benched"  # Bench-only, never placed in a group
    EXCLUDED = "excluded"  # Absent, never part of the state

    @property
    def is_assignable(self) -> bool:
        return self in (PlayerStatus.CONFIRMED, PlayerStatus.TENTATIVE, PlayerStatus.LATE)

    @property
    def is_bench_only(self) -> bool:
        return self is PlayerStatus.BENCHED

    @property
    def is_excluded(self) -> bool:
        return self is PlayerStatus.EXCLUDED


# Lower rank = placed first
ROLE_PRIORITY: dict[Role, int] = {
    Role.TANK: 0,
    Role.HEALER: 1,
    Role.DPS: 2,
}

STATUS_PRIORITY: dict[PlayerStatus, int] = {
    PlayerStatus.CONFIRMED: 0,
    PlayerStatus.TENTATIVE: 1,
    PlayerStatus.LATE: 2,
    PlayerStatus.BENCHED: 3,
    PlayerStatus.EXCLUDED: 4,
}


class Archetype(Enum):
    """Character class / specialization category used for synergy lookups."""

    WARRIOR = "warrior"
    ROGUE = "rogue"
    HUNTER = "hunter"
    MAGE = "mage"
    WARLOCK = "warlock"
    PRIEST = "priest"
    SHADOW_PRIEST = "shadow_priest"
    DRUID = "druid"
    BALANCE_DRUID = "balance_druid"
    FERAL_DRUID = "feral_druid"
    SHAMAN = "shaman"
    ELEMENTAL_SHAMAN = "elemental_shaman"
    ENHANCEMENT_SHAMAN = "enhancement_shaman"
    PALADIN = "paladin"

    @property
    def character_class(self) -> str:
        """Base class name, e.g. 'druid' for BALANCE_DRUID."""
        return _CHARACTER_CLASS[self]


_CHARACTER_CLASS: dict[Archetype, str] = {
    Archetype.WARRIOR: "warrior",
    Archetype.ROGUE: "rogue",
    Archetype.HUNTER: "hunter",
    Archetype.MAGE: "mage",
    Archetype.WARLOCK: "warlock",
    Archetype.PRIEST: "priest",
    Archetype.SHADOW_PRIEST: "priest",
    Archetype.DRUID: "druid",
    Archetype.BALANCE_DRUID: "druid",
    Archetype.FERAL_DRUID: "druid",
    Archetype.SHAMAN: "shaman",
    Archetype.ELEMENTAL_SHAMAN: "shaman",
    Archetype.ENHANCEMENT_SHAMAN: "shaman",
    Archetype.PALADIN: "paladin",
}


@dataclass(frozen=True)
class Player:
    """
    Represents a signed-up raider.

    This is a pure domain model with no infrastructure dependencies. Role,
    archetype and status arrive already normalized; the engine never edits a
    Player, it only moves it between groups and the bench.
    """

    id: str
    name: str
    archetype: Archetype | None = None
    role: Role | None = None
    status: PlayerStatus = PlayerStatus.CONFIRMED
    gear_score: float = 0.0
    signup_order: int = 0  # Deterministic tie-break only

    @property
    def has_role(self) -> bool:
        return self.role is not None

    @property
    def has_archetype(self) -> bool:
        return self.archetype is not None

    def __str__(self) -> str:
        role_str = self.role.value if self.role else "no role"
        archetype_str = self.archetype.value if self.archetype else "no archetype"
        return f"{self.name} ({archetype_str}, {role_str}, {self.status.value})"
