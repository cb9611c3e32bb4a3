"""
Greedy seed builder.

Produces the first valid assignment state the optimizer starts from. The
placement order is a strict total order, so the same roster always yields
the same seed.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from domain.models.assignment import AssignmentState, Position
from domain.models.player import ROLE_PRIORITY, STATUS_PRIORITY, Player, Role
from domain.services.constraint_service import (
    MIN_HEALERS,
    MIN_TANKS,
    ConstraintConfig,
    Violation,
    ViolationLevel,
    validate,
)
from services.error_codes import SEED_FAILED
from services.result import Result

logger = logging.getLogger("raidcomp.seeder")


@dataclass
class PlayerPartition:
    """Roster split by what the seed builder may do with each player."""

    assignable: list[Player] = field(default_factory=list)
    benched: list[Player] = field(default_factory=list)  # status benched
    incomplete: list[Player] = field(default_factory=list)  # assignable status, missing role/archetype
    excluded: list[Player] = field(default_factory=list)


@dataclass(frozen=True)
class SeedStats:
    """Summary of how a roster was placed."""

    total_players: int
    assigned: int
    benched: int
    excluded: int
    role_counts: dict[str, int]
    status_counts: dict[str, int]
    average_gear_score: int = 0  # Assigned players only


@dataclass(frozen=True)
class SeedError:
    """Diagnostics attached to a failed seed build."""

    reason: str
    violations: tuple[Violation, ...]
    stats: SeedStats | None = None


@dataclass(frozen=True)
class Feasibility:
    """Quick pre-check of whether a roster can meet the raid minimums."""

    possible: bool
    reason: str | None
    role_counts: dict[str, int]
    violations: tuple[Violation, ...] = ()


def partition_players(players: Iterable[Player]) -> PlayerPartition:
    """
    Split a roster into assignable, bench-only, incomplete and excluded players.

    Players with an assignable status but no role or archetype cannot be
    placed in a group, so they are kept apart and end up on the bench.
    """
    partition = PlayerPartition()
    for player in players:
        if player.status.is_assignable:
            if player.has_role and player.has_archetype:
                partition.assignable.append(player)
            else:
                partition.incomplete.append(player)
        elif player.status.is_bench_only:
            partition.benched.append(player)
        else:
            partition.excluded.append(player)
    return partition


def _priority_key(player: Player) -> tuple:
    return (
        ROLE_PRIORITY.get(player.role, len(ROLE_PRIORITY)),
        STATUS_PRIORITY[player.status],
        player.signup_order,
        player.id,
    )


def sort_players_by_priority(players: Iterable[Player]) -> list[Player]:
    """Order by role (tank, healer, dps), then status, signup order and id."""
    return sorted(players, key=_priority_key)


def find_placement(
    state: AssignmentState, player: Player, config: ConstraintConfig
) -> Position | None:
    """
    First open position for a player, scanning groups in id order.

    A group qualifies when it has an empty slot and the player's role has not
    reached its per-group cap there.

    Returns:
        Position of the first empty slot in the first qualifying group, or None
    """
    if state.total_assigned >= config.max_raid_size:
        return None

    cap = config.role_cap(player.role)
    for group in sorted(state.groups, key=lambda g: g.id):
        slot_index = group.first_empty_slot_index
        if slot_index is None:
            continue
        if cap is not None and group.role_counts()[player.role] >= cap:
            continue
        return Position(group.id, slot_index)
    return None


def _role_counts(players: Iterable[Player]) -> dict[str, int]:
    counts = {role.value: 0 for role in Role}
    for player in players:
        if player.role is not None:
            counts[player.role.value] += 1
    return counts


def seed_stats(players: Iterable[Player], state: AssignmentState) -> SeedStats:
    """Summarize a roster against the state it was placed into."""
    roster = list(players)
    assigned = state.assigned_players
    return SeedStats(
        total_players=len(roster),
        assigned=len(assigned),
        benched=len(state.bench),
        excluded=sum(1 for p in roster if p.status.is_excluded),
        role_counts=_role_counts(assigned),
        status_counts=dict(Counter(p.status.value for p in roster)),
        average_gear_score=state.average_gear_score,
    )


def can_build_seed(
    players: Iterable[Player], config: ConstraintConfig | None = None
) -> Feasibility:
    """
    Check whether the roster has enough assignable tanks and healers.

    Only the raid minimums are checked here; build_seed still validates the
    placed state in full.
    """
    config = config or ConstraintConfig()
    assignable = partition_players(players).assignable
    counts = _role_counts(assignable)

    violations: list[Violation] = []
    if counts[Role.TANK.value] < config.min_tanks:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                MIN_TANKS,
                f"Not enough tanks: have {counts[Role.TANK.value]}, need {config.min_tanks}",
                {"current": counts[Role.TANK.value], "limit": config.min_tanks},
            )
        )
    if counts[Role.HEALER.value] < config.min_healers:
        violations.append(
            Violation(
                ViolationLevel.RAID,
                MIN_HEALERS,
                f"Not enough healers: have {counts[Role.HEALER.value]}, need {config.min_healers}",
                {"current": counts[Role.HEALER.value], "limit": config.min_healers},
            )
        )

    return Feasibility(
        possible=not violations,
        reason=violations[0].message if violations else None,
        role_counts=counts,
        violations=tuple(violations),
    )


def build_seed(
    players: Iterable[Player], config: ConstraintConfig | None = None
) -> Result[AssignmentState]:
    """
    Greedily place players into groups in priority order.

    Excluded players are left out of the state entirely. Bench-only players,
    players with incomplete records and anyone who found no open position
    are benched, in that order.

    Args:
        players: Canonical roster
        config: Raid limits (defaults to ConstraintConfig())

    Returns:
        Result with the valid seed state, or a SEED_FAILED failure whose
        details are a SeedError. An invalid state is never returned.
    """
    config = config or ConstraintConfig()
    roster = list(players)
    partition = partition_players(roster)

    state = AssignmentState.create_empty(config.resolved_group_count, config.group_capacity)
    unplaced: list[Player] = []

    for player in sort_players_by_priority(partition.assignable):
        position = find_placement(state, player, config)
        if position is None:
            unplaced.append(player)
            continue
        state = state.with_player_at(position.group_id, position.slot_index, player)

    state = state.with_bench(partition.benched + partition.incomplete + unplaced)

    logger.debug(
        f"Seed placement: {state.total_assigned} assigned, {len(unplaced)} unplaced, "
        f"{len(partition.benched)} bench-only, {len(partition.incomplete)} incomplete, "
        f"{len(partition.excluded)} excluded"
    )

    stats = seed_stats(roster, state)
    validation = validate(state, config)
    if not validation.valid:
        reason = "; ".join(v.message for v in validation.violations)
        logger.info(f"Seed failed validation: {reason}")
        return Result.fail(
            f"Seed failed validation: {reason}",
            code=SEED_FAILED,
            details=SeedError(reason, validation.violations, stats),
        )

    logger.info(
        f"Seed built: {stats.assigned} assigned across {len(state.groups)} groups, "
        f"{stats.benched} benched, average gear score {stats.average_gear_score}"
    )
    return Result.ok(state.with_violations(()))
