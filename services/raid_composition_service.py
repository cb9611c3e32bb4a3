"""
Raid composition orchestration: seed, optimize, analyze.
"""

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from config import (
    RAID_CONSTRAINT_SETTINGS,
    SCORING_WEIGHT_SETTINGS,
    SEARCH_SETTINGS,
    USE_SYNERGY_CACHE,
)
from domain.models.assignment import AssignmentState
from domain.models.player import Player
from domain.services.constraint_service import ConstraintConfig, validate
from domain.services.scoring_service import (
    ScoringWeights,
    create_scoring_function,
    score_breakdown,
)
from domain.services.synergy_service import group_synergy, pair_synergy
from optimizer import DEEP_SEARCH, QUICK_SEARCH, Clock, SearchConfig, optimize
from seeder import SeedStats, build_seed, can_build_seed, seed_stats
from services.error_codes import INFEASIBLE_ROSTER, NO_PLAYERS
from services.result import Result
from utils.synergy_cache import get_cached_pair_synergy

logger = logging.getLogger("raidcomp.composition_service")


@dataclass(frozen=True)
class CompositionPlan:
    """Final assignment plus how the search got there."""

    state: AssignmentState
    seed_state: AssignmentState
    seed_score: float
    final_score: float
    improvement: float
    iterations: int
    stop_reason: str
    stats: SeedStats
    breakdown: dict[str, Any]
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupSummary:
    group_id: int
    player_names: tuple[str, ...]
    role_counts: dict[str, int]
    synergy: int
    average_gear_score: int


@dataclass(frozen=True)
class CompositionAnalysis:
    """
    Read-only report on an arbitrary state.

    score and breakdown are None for an invalid state, since scoring is only
    defined over valid placements.
    """

    valid: bool
    violations: tuple[str, ...]
    score: float | None
    breakdown: dict[str, Any] | None
    role_counts: dict[str, int]
    status_counts: dict[str, int]
    archetype_counts: dict[str, int]
    groups: tuple[GroupSummary, ...]
    average_gear_score: int


class RaidCompositionService:
    """Runs the seed -> local search pipeline for a roster."""

    def __init__(
        self,
        constraints: ConstraintConfig | None = None,
        weights: ScoringWeights | None = None,
        search: SearchConfig | None = None,
        use_cache: bool | None = None,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the service.

        Args:
            constraints: Hard constraints (defaults from RAID_CONSTRAINT_SETTINGS)
            weights: Scoring weights (defaults from SCORING_WEIGHT_SETTINGS)
            search: Search limits (defaults from SEARCH_SETTINGS); its constraints
                are always replaced by this service's constraints
            use_cache: Memoize pair synergy lookups (defaults to USE_SYNERGY_CACHE)
            clock: Monotonic time source passed to the optimizer
        """
        self.constraints = constraints or ConstraintConfig(**RAID_CONSTRAINT_SETTINGS)
        self.weights = weights or ScoringWeights(**SCORING_WEIGHT_SETTINGS)
        self.search = self._bind_constraints(search or SearchConfig(**SEARCH_SETTINGS))
        self.use_cache = USE_SYNERGY_CACHE if use_cache is None else use_cache
        self.pair_fn = get_cached_pair_synergy if self.use_cache else pair_synergy
        self.score_fn = create_scoring_function(self.weights, self.pair_fn)
        self.clock = clock

    def _bind_constraints(self, search: SearchConfig) -> SearchConfig:
        return replace(search, constraints=self.constraints)

    def plan(
        self, players: Iterable[Player], search: SearchConfig | None = None
    ) -> Result[CompositionPlan]:
        """
        Build a seed for the roster and improve it by local search.

        Returns:
            Result.ok(CompositionPlan) with a valid final state, or a failure
            coded NO_PLAYERS, INFEASIBLE_ROSTER or SEED_FAILED
        """
        roster = list(players)
        if not roster:
            return Result.fail("No players to assign", code=NO_PLAYERS)

        feasibility = can_build_seed(roster, self.constraints)
        if not feasibility.possible:
            logger.info(f"Roster infeasible: {feasibility.reason}")
            return Result.fail(feasibility.reason, code=INFEASIBLE_ROSTER, details=feasibility)

        seed_result = build_seed(roster, self.constraints)
        if not seed_result:
            return seed_result
        seed = seed_result.value

        search_config = self._bind_constraints(search) if search else self.search
        opt_result = optimize(seed, self.score_fn, search_config, self.clock)
        if not opt_result:
            return opt_result
        outcome = opt_result.value

        final_state = outcome.final_state
        final_score = outcome.final_score
        warnings: list[str] = []

        final_validation = validate(final_state, self.constraints)
        if not final_validation.valid:
            logger.error(
                f"Optimized state failed validation, falling back to seed: "
                f"{final_validation.messages()}"
            )
            warnings.append("Optimized state failed validation; returned the seed instead")
            final_state = seed
            final_score = outcome.initial_score

        logger.info(
            f"Composition planned for {len(roster)} players: score "
            f"{outcome.initial_score:.2f} -> {final_score:.2f} "
            f"({outcome.iterations} iterations, {outcome.stop_reason})"
        )

        return Result.ok(
            CompositionPlan(
                state=final_state,
                seed_state=seed,
                seed_score=outcome.initial_score,
                final_score=final_score,
                improvement=final_score - outcome.initial_score,
                iterations=outcome.iterations,
                stop_reason=outcome.stop_reason,
                stats=seed_stats(roster, final_state),
                breakdown=score_breakdown(final_state, self.weights, self.pair_fn),
                warnings=tuple(warnings),
            )
        )

    def quick_plan(self, players: Iterable[Player]) -> Result[CompositionPlan]:
        """Plan with a short search budget."""
        return self.plan(players, QUICK_SEARCH)

    def deep_plan(self, players: Iterable[Player]) -> Result[CompositionPlan]:
        """Plan with a long search budget."""
        return self.plan(players, DEEP_SEARCH)

    def analyze(self, state: AssignmentState) -> CompositionAnalysis:
        """Validate and score a state and summarize each group."""
        validation = validate(state, self.constraints)
        breakdown = None
        total = None
        if validation.valid:
            breakdown = score_breakdown(state, self.weights, self.pair_fn)
            total = breakdown["total"]

        groups = tuple(
            GroupSummary(
                group_id=group.id,
                player_names=tuple(p.name for p in group.players),
                role_counts={role.value: count for role, count in group.role_counts().items()},
                synergy=group_synergy(group.players, self.pair_fn),
                average_gear_score=group.average_gear_score,
            )
            for group in state.groups
        )

        return CompositionAnalysis(
            valid=validation.valid,
            violations=tuple(validation.messages()),
            score=total,
            breakdown=breakdown,
            role_counts={role.value: count for role, count in state.role_counts().items()},
            status_counts=state.status_counts(),
            archetype_counts={
                archetype.value: count for archetype, count in state.archetype_counts().items()
            },
            groups=groups,
            average_gear_score=state.average_gear_score,
        )
