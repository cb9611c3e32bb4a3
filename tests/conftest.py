"""
Pytest fixtures for tests.

This module provides centralized roster builders and fixtures to reduce
duplication across the test suite. Import make_player from here instead of
constructing Player records by hand in each test file.
"""

import pytest

from domain.models.assignment import AssignmentState
from domain.models.player import Archetype, Player, PlayerStatus, Role
from domain.services.constraint_service import ConstraintConfig
from domain.services.scoring_service import clear_group_tally_cache
from utils.synergy_cache import clear_synergy_cache


# =============================================================================
# CENTRALIZED ROSTER BUILDERS
# =============================================================================

DEFAULT_ARCHETYPE = {
    Role.TANK: Archetype.WARRIOR,
    Role.HEALER: Archetype.PRIEST,
    Role.DPS: Archetype.ROGUE,
}
"""Archetype used by make_player when none is given."""


def make_player(
    player_id: str,
    role: Role | None = Role.DPS,
    archetype: Archetype | None = None,
    status: PlayerStatus = PlayerStatus.CONFIRMED,
    signup_order: int = 0,
    name: str | None = None,
    gear_score: float = 0.0,
) -> Player:
    """Build a Player with a role-appropriate archetype unless one is given."""
    if archetype is None and role is not None:
        archetype = DEFAULT_ARCHETYPE[role]
    return Player(
        id=player_id,
        name=name or player_id,
        archetype=archetype,
        role=role,
        status=status,
        signup_order=signup_order,
        gear_score=gear_score,
    )


def make_roster(tanks: int, healers: int, dps: int) -> list[Player]:
    """Roster with ids t0.., h0.., d0.. and increasing signup order."""
    players = []
    order = 0
    groups = (("t", Role.TANK, tanks), ("h", Role.HEALER, healers), ("d", Role.DPS, dps))
    for prefix, role, count in groups:
        for i in range(count):
            players.append(make_player(f"{prefix}{i}", role, signup_order=order))
            order += 1
    return players


def place(state: AssignmentState, group_id: int, *players: Player) -> AssignmentState:
    """Fill a group's slots in order with the given players."""
    for slot_index, player in enumerate(players):
        state = state.with_player_at(group_id, slot_index, player)
    return state


@pytest.fixture(autouse=True)
def clear_caches():
    """
    Clear global caches before and after each test to prevent cross-test contamination.

    The synergy and group tally caches are process-global (LRU caches), and
    a warm tally cache would hide pair synergy lookups from later tests.
    """
    clear_synergy_cache()
    clear_group_tally_cache()
    yield
    clear_synergy_cache()
    clear_group_tally_cache()


@pytest.fixture
def relaxed_config():
    """Small raid with no role minimums: 2 groups of 2."""
    return ConstraintConfig(
        max_raid_size=4,
        min_tanks=0,
        min_healers=0,
        group_capacity=2,
        group_count=2,
    )


@pytest.fixture
def standard_roster():
    """3 tanks, 8 healers and 20 dps."""
    return make_roster(3, 8, 20)


@pytest.fixture
def raid25_config():
    """25-player raid: 5 groups of 5, 1 tank and 2 healers per group, 2 tanks and 5 healers minimum."""
    return ConstraintConfig(max_raid_size=25)


FULL_RAID_ARCHETYPES = {
    Role.TANK: (Archetype.WARRIOR, Archetype.PALADIN, Archetype.FERAL_DRUID),
    Role.HEALER: (Archetype.PRIEST, Archetype.SHAMAN, Archetype.PALADIN, Archetype.DRUID),
    Role.DPS: (
        Archetype.ROGUE,
        Archetype.MAGE,
        Archetype.WARLOCK,
        Archetype.HUNTER,
        Archetype.ENHANCEMENT_SHAMAN,
        Archetype.SHADOW_PRIEST,
        Archetype.BALANCE_DRUID,
        Archetype.WARRIOR,
        Archetype.FERAL_DRUID,
        Archetype.ELEMENTAL_SHAMAN,
    ),
}


@pytest.fixture
def full_raid_roster():
    """40 signups of mixed classes: 4 tanks, 10 healers and 26 dps."""
    players = []
    order = 0
    groups = (("t", Role.TANK, 4), ("h", Role.HEALER, 10), ("d", Role.DPS, 26))
    for prefix, role, count in groups:
        archetypes = FULL_RAID_ARCHETYPES[role]
        for i in range(count):
            players.append(
                make_player(
                    f"{prefix}{i}",
                    role,
                    archetypes[i % len(archetypes)],
                    signup_order=order,
                    gear_score=100 + order,
                )
            )
            order += 1
    return players
