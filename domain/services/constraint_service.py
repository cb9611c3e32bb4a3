"""
Hard constraint validation domain service.

Constraints are binary pass/fail rules, never penalties. A state that
violates any of them is invalid regardless of its score.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from domain.models.assignment import AssignmentState, Group, Position
from domain.models.player import Player, Role


class ViolationLevel(Enum):
    RAID = "raid"
    GROUP = "group"
    PLAYER = "player"
    SWAP = "swap"


# Rule names
MAX_RAID_SIZE = "MAX_RAID_SIZE"
MIN_TANKS = "MIN_TANKS"
MIN_HEALERS = "MIN_HEALERS"
NO_DUPLICATES = "NO_DUPLICATES"
GROUP_SIZE = "GROUP_SIZE"
MAX_TANKS_PER_GROUP = "MAX_TANKS_PER_GROUP"
MAX_HEALERS_PER_GROUP = "MAX_HEALERS_PER_GROUP"
NO_DUPLICATES_IN_GROUP = "NO_DUPLICATES_IN_GROUP"
EXCLUDED_PLAYER_ASSIGNED = "EXCLUDED_PLAYER_ASSIGNED"
BENCHED_PLAYER_ASSIGNED = "BENCHED_PLAYER_ASSIGNED"
MISSING_ROLE = "MISSING_ROLE"
MISSING_ARCHETYPE = "MISSING_ARCHETYPE"
INVALID_GROUP = "INVALID_GROUP"
INVALID_SLOT = "INVALID_SLOT"
SAME_POSITION = "SAME_POSITION"
EMPTY_SWAP = "EMPTY_SWAP"


@dataclass(frozen=True)
class ConstraintConfig:
    """
    Raid- and group-level limits.

    Attributes:
        max_raid_size: Maximum number of players placed in groups
        min_tanks: Minimum tank-role players across the raid
        min_healers: Minimum healer-role players across the raid
        group_capacity: Slots per group
        group_count: Number of groups; derived from raid size when None
        max_tanks_per_group: Tank cap per group
        max_healers_per_group: Healer cap per group
    """

    max_raid_size: int = 40
    min_tanks: int = 2
    min_healers: int = 5
    group_capacity: int = 5
    group_count: int | None = None
    max_tanks_per_group: int = 1
    max_healers_per_group: int = 2

    @property
    def resolved_group_count(self) -> int:
        if self.group_count is not None:
            return self.group_count
        if self.group_capacity <= 0:
            return 0
        return math.ceil(self.max_raid_size / self.group_capacity)

    def role_cap(self, role: Role | None) -> int | None:
        """Per-group cap for a role, or None when the role is uncapped."""
        if role is Role.TANK:
            return self.max_tanks_per_group
        if role is Role.HEALER:
            return self.max_healers_per_group
        return None


@dataclass(frozen=True)
class Violation:
    """A single broken rule with structured details for diagnostics."""

    level: ViolationLevel
    rule: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.level.value}] {self.rule}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Pass/fail outcome plus every violation found."""

    valid: bool
    violations: tuple[Violation, ...] = ()

    @classmethod
    def from_violations(cls, violations) -> "ValidationResult":
        violations = tuple(violations)
        return cls(valid=not violations, violations=violations)

    @property
    def rules(self) -> tuple[str, ...]:
        return tuple(v.rule for v in self.violations)

    def has_rule(self, rule: str) -> bool:
        return any(v.rule == rule for v in self.violations)

    def messages(self) -> list[str]:
        return [str(v) for v in self.violations]

    def __bool__(self) -> bool:
        return self.valid


def _duplicate_ids(players) -> list[str]:
    counts = Counter(p.id for p in players)
    return sorted(pid for pid, count in counts.items() if count > 1)


def validate_raid(state: AssignmentState, config: ConstraintConfig) -> list[Violation]:
    violations: list[Violation] = []
    assigned = state.total_assigned
    roles = state.role_counts()

    if assigned > config.max_raid_size:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                MAX_RAID_SIZE,
                f"Raid has {assigned} players, exceeds maximum of {config.max_raid_size}",
                {"current": assigned, "limit": config.max_raid_size},
            )
        )

    if roles[Role.TANK] < config.min_tanks:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                MIN_TANKS,
                f"Raid has {roles[Role.TANK]} tanks, requires minimum of {config.min_tanks}",
                {"current": roles[Role.TANK], "limit": config.min_tanks},
            )
        )

    if roles[Role.HEALER] < config.min_healers:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                MIN_HEALERS,
                f"Raid has {roles[Role.HEALER]} healers, requires minimum of {config.min_healers}",
                {"current": roles[Role.HEALER], "limit": config.min_healers},
            )
        )

    duplicates = _duplicate_ids(state.all_players)
    if duplicates:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                NO_DUPLICATES,
                f"Players placed more than once: {', '.join(duplicates)}",
                {"player_ids": duplicates},
            )
        )

    return violations


def validate_group(group: Group, config: ConstraintConfig) -> list[Violation]:
    violations: list[Violation] = []
    filled = group.filled_count
    roles = group.role_counts()

    if filled > config.group_capacity:
        violations.append(
            Violation(
                ViolationLevel.GROUP,
                GROUP_SIZE,
                f"Group {group.id} has {filled} players, exceeds maximum of {config.group_capacity}",
                {"group_id": group.id, "current": filled, "limit": config.group_capacity},
            )
        )

    if roles[Role.TANK] > config.max_tanks_per_group:
        violations.append(
            Violation(
                ViolationLevel.GROUP,
                MAX_TANKS_PER_GROUP,
                f"Group {group.id} has {roles[Role.TANK]} tanks, "
                f"exceeds maximum of {config.max_tanks_per_group}",
                {
                    "group_id": group.id,
                    "current": roles[Role.TANK],
                    "limit": config.max_tanks_per_group,
                },
            )
        )

    if roles[Role.HEALER] > config.max_healers_per_group:
        violations.append(
            Violation(
                ViolationLevel.GROUP,
                MAX_HEALERS_PER_GROUP,
                f"Group {group.id} has {roles[Role.HEALER]} healers, "
                f"exceeds maximum of {config.max_healers_per_group}",
                {
                    "group_id": group.id,
                    "current": roles[Role.HEALER],
                    "limit": config.max_healers_per_group,
                },
            )
        )

    duplicates = _duplicate_ids(group.players)
    if duplicates:
        violations.append(
            Violation(
                ViolationLevel.GROUP,
                NO_DUPLICATES_IN_GROUP,
                f"Group {group.id} has duplicate players: {', '.join(duplicates)}",
                {"group_id": group.id, "player_ids": duplicates},
            )
        )

    return violations


def validate_player(player: Player) -> list[Violation]:
    """Rules for a player that sits in a group."""
    violations: list[Violation] = []

    if player.status.is_excluded:
        violations.append(
            Violation(
                ViolationLevel.PLAYER,
                EXCLUDED_PLAYER_ASSIGNED,
                f"Player {player.name} has status '{player.status.value}' but is assigned to a group",
                {"player_id": player.id, "status": player.status.value},
            )
        )

    if player.status.is_bench_only:
        violations.append(
            Violation(
                ViolationLevel.PLAYER,
                BENCHED_PLAYER_ASSIGNED,
                f"Player {player.name} is bench-only but is assigned to a group",
                {"player_id": player.id, "status": player.status.value},
            )
        )

    if player.role is None:
        violations.append(
            Violation(
                ViolationLevel.PLAYER,
                MISSING_ROLE,
                f"Player {player.name} has no role",
                {"player_id": player.id},
            )
        )

    if player.archetype is None:
        violations.append(
            Violation(
                ViolationLevel.PLAYER,
                MISSING_ARCHETYPE,
                f"Player {player.name} has no archetype",
                {"player_id": player.id},
            )
        )

    return violations


def validate(state: AssignmentState, config: ConstraintConfig | None = None) -> ValidationResult:
    """
    Check every raid-, group- and player-level rule against a state.

    Never scores and never raises; the same state always yields the same
    violations in the same order.

    Args:
        state: State to check
        config: Limits to enforce (defaults to ConstraintConfig())

    Returns:
        ValidationResult with valid=False and itemized violations on failure
    """
    config = config or ConstraintConfig()
    violations = validate_raid(state, config)

    for group in state.groups:
        violations.extend(validate_group(group, config))

    for player in state.assigned_players:
        violations.extend(validate_player(player))

    return ValidationResult.from_violations(violations)


def is_valid(state: AssignmentState, config: ConstraintConfig | None = None) -> bool:
    return validate(state, config).valid


def _check_position(state: AssignmentState, pos: Position) -> Violation | None:
    group = state.group(pos.group_id)
    if group is None:
        return Violation(
            ViolationLevel.SWAP,
            INVALID_GROUP,
            f"Group {pos.group_id} does not exist",
            {"group_id": pos.group_id},
        )
    if pos.slot_index < 0 or pos.slot_index >= group.capacity:
        return Violation(
            ViolationLevel.SWAP,
            INVALID_SLOT,
            f"Slot {pos.slot_index} does not exist in group {pos.group_id}",
            {"group_id": pos.group_id, "slot_index": pos.slot_index, "limit": group.capacity},
        )
    return None


def validate_swap(
    state: AssignmentState,
    pos_a: Position,
    pos_b: Position,
    config: ConstraintConfig | None = None,
) -> ValidationResult:
    """
    Validate exchanging the occupants of two positions.

    Rejects references to missing groups or slots and no-op swaps outright;
    otherwise validates the hypothetical post-swap state. A swap with one
    empty side is a move without displacement.
    """
    violations = [v for v in (_check_position(state, pos_a), _check_position(state, pos_b)) if v]
    if violations:
        return ValidationResult.from_violations(violations)

    if pos_a == pos_b:
        return ValidationResult.from_violations(
            [
                Violation(
                    ViolationLevel.SWAP,
                    SAME_POSITION,
                    f"Cannot swap {pos_a} with itself",
                    {"position": pos_a},
                )
            ]
        )

    if state.player_at(pos_a) is None and state.player_at(pos_b) is None:
        return ValidationResult.from_violations(
            [
                Violation(
                    ViolationLevel.SWAP,
                    EMPTY_SWAP,
                    "Cannot swap two empty slots",
                    {"positions": (pos_a, pos_b)},
                )
            ]
        )

    return validate(state.swap(pos_a, pos_b), config)
