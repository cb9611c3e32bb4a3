"""
Weighted scoring domain service.

Expresses preferences over constraint-valid states only; it never enforces a
constraint. Every term is independently weighted and built from per-group
integer tallies summed over all groups before the weight is applied, so
reordering groups cannot change the result. Tallies are memoized per frozen
Group; a swap neighbor only re-tallies the two groups it touched.
"""

import functools
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from domain.models.assignment import AssignmentState, Group
from domain.models.player import PlayerStatus, Role
from domain.services.synergy_service import (
    WINDFURY_ARCHETYPES,
    WINDFURY_RECIPIENT_CLASSES,
    PairSynergyFn,
    group_synergy,
    is_paladin,
    is_ranged_dps,
    is_shaman,
    pair_synergy,
)

ScoreFn = Callable[[AssignmentState], float]


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights for each scoring term. Negative weights are penalties.

    Attributes:
        group_synergy: Per point of pairwise + composition synergy
        windfury_melee_bonus: Per melee player sharing a group with a Windfury shaman
        shaman_healer_distribution: Per group holding a healer-role shaman
        paladin_buff_distribution: Per group holding a paladin
        even_healer_spread: Applied to the negative std-dev of healers per group
        tank_support_coverage: Per group holding both a tank and a healer
        same_archetype_in_group: Per repeated archetype beyond the first in a group
        too_many_ranged_in_group: Per ranged dps above max_ranged_per_group in a group
        max_ranged_per_group: Ranged dps allowed in a group before the penalty applies
        late_player_penalty: Per assigned late player
        tentative_player_penalty: Per assigned tentative player
        benching_penalty: Per benched player
    """

    group_synergy: float = 0.1
    windfury_melee_bonus: float = 10.0
    shaman_healer_distribution: float = 5.0
    paladin_buff_distribution: float = 5.0
    even_healer_spread: float = 8.0
    tank_support_coverage: float = 6.0
    same_archetype_in_group: float = -3.0
    too_many_ranged_in_group: float = -2.0
    max_ranged_per_group: int = 3
    late_player_penalty: float = -5.0
    tentative_player_penalty: float = -2.0
    benching_penalty: float = -1.0


DEFAULT_WEIGHTS = ScoringWeights()


# Large enough for every neighbor group of one 8x5 evaluation
GROUP_TALLY_CACHE_SIZE = 8192


@dataclass(frozen=True)
class GroupTally:
    """
    Integer aggregates of one group that the scoring terms are built from.

    Tallies depend only on the group, so untouched groups shared between
    neighboring states are tallied once.
    """

    synergy: int
    windfury_covered: int
    shaman_healer: bool
    paladin: bool
    healers: int
    tank_support: bool
    duplicate_archetypes: int
    ranged_dps: int
    late: int
    tentative: int


@functools.lru_cache(maxsize=GROUP_TALLY_CACHE_SIZE)
def tally_group(group: Group, pair_fn: PairSynergyFn = pair_synergy) -> GroupTally:
    players = group.players
    roles = group.role_counts()
    windfury_covered = 0
    if any(p.archetype in WINDFURY_ARCHETYPES for p in players):
        windfury_covered = sum(
            1
            for p in players
            if p.archetype is not None
            and p.archetype.character_class in WINDFURY_RECIPIENT_CLASSES
        )
    return GroupTally(
        synergy=group_synergy(players, pair_fn),
        windfury_covered=windfury_covered,
        shaman_healer=any(is_shaman(p) and p.role is Role.HEALER for p in players),
        paladin=any(is_paladin(p) for p in players),
        healers=roles[Role.HEALER],
        tank_support=roles[Role.TANK] > 0 and roles[Role.HEALER] > 0,
        duplicate_archetypes=sum(
            count - 1 for count in group.archetype_counts().values() if count > 1
        ),
        ranged_dps=sum(1 for p in players if is_ranged_dps(p)),
        late=sum(1 for p in players if p.status is PlayerStatus.LATE),
        tentative=sum(1 for p in players if p.status is PlayerStatus.TENTATIVE),
    )


def clear_group_tally_cache() -> None:
    tally_group.cache_clear()


def tally_groups(
    state: AssignmentState, pair_fn: PairSynergyFn = pair_synergy
) -> tuple[GroupTally, ...]:
    return tuple(tally_group(group, pair_fn) for group in state.groups)


def score_group_synergy(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(t.synergy for t in tallies) * weight


def score_windfury_melee(tallies: Sequence[GroupTally], weight: float) -> float:
    """Melee-class players in groups that hold a Windfury shaman."""
    return sum(t.windfury_covered for t in tallies) * weight


def score_shaman_healer_distribution(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(1 for t in tallies if t.shaman_healer) * weight


def score_paladin_distribution(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(1 for t in tallies if t.paladin) * weight


def score_healer_spread(tallies: Sequence[GroupTally], weight: float) -> float:
    """Negative population std-dev of healers per group (even spread scores highest)."""
    if not tallies:
        return 0.0
    counts = sorted(t.healers for t in tallies)
    mean = sum(counts) / len(counts)
    variance = sum((c - mean) ** 2 for c in counts) / len(counts)
    return -math.sqrt(variance) * weight


def score_tank_support(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(1 for t in tallies if t.tank_support) * weight


def score_same_archetype(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(t.duplicate_archetypes for t in tallies) * weight


def score_ranged_saturation(
    tallies: Sequence[GroupTally], weight: float, max_ranged: int
) -> float:
    return sum(max(t.ranged_dps - max_ranged, 0) for t in tallies) * weight


def score_late(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(t.late for t in tallies) * weight


def score_tentative(tallies: Sequence[GroupTally], weight: float) -> float:
    return sum(t.tentative for t in tallies) * weight


def score_bench(state: AssignmentState, weight: float) -> float:
    return len(state.bench) * weight


def score_breakdown(
    state: AssignmentState,
    weights: ScoringWeights | None = None,
    pair_fn: PairSynergyFn = pair_synergy,
) -> dict[str, dict[str, float] | float]:
    """
    Per-term contributions grouped by category.

    Returns:
        Dict with synergy, role_balance, redundancy, status and bench
        sub-dicts plus the overall total
    """
    w = weights or DEFAULT_WEIGHTS
    tallies = tally_groups(state, pair_fn)
    breakdown: dict[str, dict[str, float] | float] = {
        "synergy": {
            "group_synergy": score_group_synergy(tallies, w.group_synergy),
            "windfury_melee": score_windfury_melee(tallies, w.windfury_melee_bonus),
            "shaman_healers": score_shaman_healer_distribution(
                tallies, w.shaman_healer_distribution
            ),
            "paladin_buffs": score_paladin_distribution(tallies, w.paladin_buff_distribution),
        },
        "role_balance": {
            "healer_spread": score_healer_spread(tallies, w.even_healer_spread),
            "tank_support": score_tank_support(tallies, w.tank_support_coverage),
        },
        "redundancy": {
            "same_archetype": score_same_archetype(tallies, w.same_archetype_in_group),
            "too_many_ranged": score_ranged_saturation(
                tallies, w.too_many_ranged_in_group, w.max_ranged_per_group
            ),
        },
        "status": {
            "late_players": score_late(tallies, w.late_player_penalty),
            "tentative_players": score_tentative(tallies, w.tentative_player_penalty),
        },
        "bench": {
            "benched_players": score_bench(state, w.benching_penalty),
        },
    }
    breakdown["total"] = sum(
        value for category in breakdown.values() for value in category.values()
    )
    return breakdown


def score(
    state: AssignmentState,
    weights: ScoringWeights | None = None,
    pair_fn: PairSynergyFn = pair_synergy,
) -> float:
    """
    Weighted score of a constraint-valid state (higher is better).

    Callers must validate first; this function does not.
    """
    return score_breakdown(state, weights, pair_fn)["total"]


def create_scoring_function(
    weights: ScoringWeights | None = None, pair_fn: PairSynergyFn = pair_synergy
) -> ScoreFn:
    """Bind weights (and a pair synergy lookup) into a state -> score callable."""

    def _score(state: AssignmentState) -> float:
        return score(state, weights, pair_fn)

    return _score


def compare_states(
    first: AssignmentState,
    second: AssignmentState,
    weights: ScoringWeights | None = None,
) -> dict[str, float | str]:
    """Score two states and report which one is better."""
    first_score = score(first, weights)
    second_score = score(second, weights)
    if second_score > first_score:
        better = "second"
    elif first_score > second_score:
        better = "first"
    else:
        better = "equal"
    return {
        "first_score": first_score,
        "second_score": second_score,
        "difference": second_score - first_score,
        "better": better,
    }
