"""
Synergy domain service.

Pairwise affinity between two raiders and composition bonuses for a group.
All lookups are O(1) per pair so group-level aggregation stays cheap.
"""

import itertools
from collections.abc import Callable, Iterable

from domain.models.player import Archetype, Player, Role

MELEE_ARCHETYPES = frozenset(
    {
        Archetype.WARRIOR,
        Archetype.ROGUE,
        Archetype.FERAL_DRUID,
        Archetype.ENHANCEMENT_SHAMAN,
    }
)
CASTER_ARCHETYPES = frozenset(
    {
        Archetype.MAGE,
        Archetype.WARLOCK,
        Archetype.SHADOW_PRIEST,
        Archetype.BALANCE_DRUID,
    }
)
SHAMAN_ARCHETYPES = frozenset(
    {
        Archetype.SHAMAN,
        Archetype.ELEMENTAL_SHAMAN,
        Archetype.ENHANCEMENT_SHAMAN,
    }
)
# Shamans that drop Windfury Totem for their group
WINDFURY_ARCHETYPES = frozenset({Archetype.SHAMAN, Archetype.ENHANCEMENT_SHAMAN})
# Classes that gain from Windfury (hunters melee-weave)
WINDFURY_RECIPIENT_CLASSES = frozenset({"warrior", "rogue", "hunter"})
RANGED_CLASSES = frozenset({"mage", "warlock", "hunter", "priest"})

PairSynergyFn = Callable[[Player, Player], int]


def is_melee(player: Player) -> bool:
    return player.archetype in MELEE_ARCHETYPES


def is_caster(player: Player) -> bool:
    return player.archetype in CASTER_ARCHETYPES


def is_shaman(player: Player) -> bool:
    return player.archetype in SHAMAN_ARCHETYPES


def is_mage(player: Player) -> bool:
    return player.archetype is Archetype.MAGE


def is_warlock(player: Player) -> bool:
    return player.archetype is Archetype.WARLOCK


def is_hunter(player: Player) -> bool:
    return player.archetype is Archetype.HUNTER


def is_balance_druid(player: Player) -> bool:
    return player.archetype is Archetype.BALANCE_DRUID


def is_shadow_priest(player: Player) -> bool:
    return player.archetype is Archetype.SHADOW_PRIEST


def is_feral_druid(player: Player) -> bool:
    return player.archetype is Archetype.FERAL_DRUID


def is_paladin(player: Player) -> bool:
    return player.archetype is Archetype.PALADIN


def is_tank(player: Player) -> bool:
    return player.role is Role.TANK


def is_healer(player: Player) -> bool:
    return player.role is Role.HEALER


def is_ranged_dps(player: Player) -> bool:
    if player.archetype is None or player.role is not Role.DPS:
        return False
    return player.archetype.character_class in RANGED_CLASSES


# Rules where both players must match the same predicate
_SHARED_RULES: tuple[tuple[Callable[[Player], bool], int], ...] = (
    (is_melee, 15),
    (is_caster, 10),
)

# Rules of the form "first benefits from / supports second". Each is checked in
# both directions so pair_synergy stays symmetric.
_DIRECTED_RULES: tuple[tuple[Callable[[Player], bool], Callable[[Player], bool], int], ...] = (
    (is_melee, is_shaman, 30),  # Windfury
    (is_mage, is_balance_druid, 25),  # Moonkin aura
    (is_warlock, is_shadow_priest, 25),  # Shadow Weaving
    (is_hunter, is_melee, 10),  # Trueshot Aura
    (is_feral_druid, is_melee, 15),  # Leader of the Pack
    (is_tank, is_shaman, 40),  # Windfury threat on the tank
)

COMPOSITION_BONUSES = {
    "melee_windfury": 50,
    "mage_moonkin": 40,
    "warlock_shadow": 40,
    "hunter_pack": 20,
    "healer_present": 15,
    "tank_present": 10,
}


def pair_synergy(a: Player, b: Player) -> int:
    """
    Symmetric synergy score between two players.

    Args:
        a: First player
        b: Second player

    Returns:
        Sum of every matching affinity rule (0 when nothing applies)
    """
    score = 0

    for predicate, bonus in _SHARED_RULES:
        if predicate(a) and predicate(b):
            score += bonus

    for first, second, bonus in _DIRECTED_RULES:
        if first(a) and second(b):
            score += bonus
        if first(b) and second(a):
            score += bonus

    return score


def count_player_types(players: Iterable[Player]) -> dict[str, int]:
    """Count the player categories the composition bonuses look at."""
    counts = {
        "melee": 0,
        "mages": 0,
        "warlocks": 0,
        "hunters": 0,
        "shamans": 0,
        "balance_druids": 0,
        "shadow_priests": 0,
        "healers": 0,
        "tanks": 0,
    }
    for player in players:
        counts["melee"] += is_melee(player)
        counts["mages"] += is_mage(player)
        counts["warlocks"] += is_warlock(player)
        counts["hunters"] += is_hunter(player)
        counts["shamans"] += is_shaman(player)
        counts["balance_druids"] += is_balance_druid(player)
        counts["shadow_priests"] += is_shadow_priest(player)
        counts["healers"] += is_healer(player)
        counts["tanks"] += is_tank(player)
    return counts


def group_composition_bonus(players: Iterable[Player]) -> int:
    """
    Non-pairwise bonus for multi-player patterns within one group.

    Rewards a melee pack with a Windfury shaman, a mage pack with a moonkin,
    a warlock pack with a shadow priest, paired hunters, and the presence of
    a healer and a tank.
    """
    counts = count_player_types(players)
    bonus = 0

    if counts["melee"] >= 3 and counts["shamans"] >= 1:
        bonus += COMPOSITION_BONUSES["melee_windfury"]
    if counts["mages"] >= 3 and counts["balance_druids"] >= 1:
        bonus += COMPOSITION_BONUSES["mage_moonkin"]
    if counts["warlocks"] >= 3 and counts["shadow_priests"] >= 1:
        bonus += COMPOSITION_BONUSES["warlock_shadow"]
    if counts["hunters"] >= 2:
        bonus += COMPOSITION_BONUSES["hunter_pack"]
    if counts["healers"] >= 1:
        bonus += COMPOSITION_BONUSES["healer_present"]
    if counts["tanks"] >= 1:
        bonus += COMPOSITION_BONUSES["tank_present"]

    return bonus


def group_synergy(players: Iterable[Player], pair_fn: PairSynergyFn = pair_synergy) -> int:
    """Total synergy for one group: every unordered pair plus the composition bonus."""
    members = list(players)
    total = sum(pair_fn(a, b) for a, b in itertools.combinations(members, 2))
    return total + group_composition_bonus(members)
