"""
Deterministic local search over constraint-valid assignment states.

Steepest-ascent hill climbing on pairwise slot swaps. Every neighbor is
validated before it is scored, so the walk never leaves the valid region and
the returned state is always valid.
"""

import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from domain.models.assignment import AssignmentState, Position
from domain.services.constraint_service import ConstraintConfig, validate
from domain.services.scoring_service import ScoreFn
from services.error_codes import INVALID_SEED
from services.result import Result

logger = logging.getLogger("raidcomp.optimizer")

Clock = Callable[[], float]

# Stop reasons
STOP_MAX_ITERATIONS = "max_iterations"
STOP_STALLED = "stalled"
STOP_TIME_BUDGET = "time_budget"
STOP_NO_NEIGHBORS = "no_neighbors"


@dataclass(frozen=True)
class SearchConfig:
    """
    Search limits.

    Attributes:
        max_iterations: Hard cap on search iterations
        max_stall_iterations: Consecutive non-improving iterations before stopping
        time_budget_seconds: Wall-clock budget, checked at iteration boundaries
        constraints: Hard constraints every visited state must satisfy
    """

    max_iterations: int = 1000
    max_stall_iterations: int = 50
    time_budget_seconds: float = 5.0
    constraints: ConstraintConfig = field(default_factory=ConstraintConfig)


QUICK_SEARCH = SearchConfig(max_iterations=100, max_stall_iterations=20, time_budget_seconds=1.0)
DEEP_SEARCH = SearchConfig(max_iterations=5000, max_stall_iterations=200, time_budget_seconds=30.0)


@dataclass(frozen=True)
class SwapCandidate:
    """An exchange of the occupants of two positions."""

    pos_a: Position
    pos_b: Position

    def __str__(self) -> str:
        return f"{self.pos_a} <-> {self.pos_b}"


@dataclass(frozen=True)
class NeighborEvaluation:
    """Outcome of scanning every neighbor of one state."""

    best_swap: SwapCandidate | None
    best_state: AssignmentState | None
    best_score: float | None
    candidates: int
    valid: int

    @property
    def pruned(self) -> int:
        return self.candidates - self.valid


@dataclass(frozen=True)
class IterationRecord:
    iteration: int
    score: float
    candidates: int
    valid: int
    pruned: int
    moved: bool
    swap: SwapCandidate | None = None


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of one search run."""

    initial_state: AssignmentState
    final_state: AssignmentState
    initial_score: float
    final_score: float
    iterations: int
    improved: bool
    stop_reason: str
    elapsed_seconds: float
    history: tuple[IterationRecord, ...] = ()

    @property
    def improvement(self) -> float:
        return self.final_score - self.initial_score


def generate_swap_neighbors(state: AssignmentState) -> list[SwapCandidate]:
    """
    Every unordered pair of distinct positions, skipping pairs of two empty slots.

    Positions are enumerated by group id then slot index, so the order is
    stable for a given state shape.
    """
    swaps = []
    for pos_a, pos_b in itertools.combinations(list(state.positions()), 2):
        if state.player_at(pos_a) is None and state.player_at(pos_b) is None:
            continue
        swaps.append(SwapCandidate(pos_a, pos_b))
    return swaps


def is_role_preserving(state: AssignmentState, swap: SwapCandidate) -> bool:
    """A swap is role-preserving when one side is empty or both share a role."""
    player_a = state.player_at(swap.pos_a)
    player_b = state.player_at(swap.pos_b)
    if player_a is None or player_b is None:
        return True
    return player_a.role == player_b.role


def generate_role_preserving_swaps(state: AssignmentState) -> list[SwapCandidate]:
    return [swap for swap in generate_swap_neighbors(state) if is_role_preserving(state, swap)]


class LocalSearchOptimizer:
    """
    Steepest-ascent hill climber over swap neighborhoods.

    Each iteration scores every valid role-preserving neighbor and moves to
    the best one when it strictly beats the current score. Ties go to the
    neighbor enumerated first, so runs are fully reproducible.
    """

    def __init__(
        self,
        score_fn: ScoreFn,
        config: SearchConfig | None = None,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the optimizer.

        Args:
            score_fn: Maps a valid state to a score (higher is better)
            config: Search limits and constraints (defaults to SearchConfig())
            clock: Monotonic time source in seconds; injectable for tests
        """
        self.score_fn = score_fn
        self.config = config or SearchConfig()
        self.clock = clock

    def generate_swaps(self, state: AssignmentState) -> list[SwapCandidate]:
        return generate_swap_neighbors(state)

    def role_preserving_swaps(self, state: AssignmentState) -> list[SwapCandidate]:
        return generate_role_preserving_swaps(state)

    def evaluate(self, state: AssignmentState) -> NeighborEvaluation:
        """
        Validate and score every role-preserving neighbor of a state.

        Invalid neighbors are pruned without scoring. The first neighbor with
        the strictly highest score wins.
        """
        candidates = self.role_preserving_swaps(state)
        constraints = self.config.constraints
        trace = logger.isEnabledFor(logging.DEBUG)

        best_swap = None
        best_state = None
        best_score = None
        valid = 0

        for swap in candidates:
            # Generated swaps always reference two distinct, existing positions
            # with at least one occupant, so only the post-swap state needs checking
            neighbor = state.swap(swap.pos_a, swap.pos_b)
            if not validate(neighbor, constraints).valid:
                if trace:
                    logger.debug(f"Pruned invalid swap {swap}")
                continue
            valid += 1
            neighbor_score = self.score_fn(neighbor)
            if best_score is None or neighbor_score > best_score:
                best_swap, best_state, best_score = swap, neighbor, neighbor_score

        return NeighborEvaluation(best_swap, best_state, best_score, len(candidates), valid)

    def optimize(self, seed: AssignmentState) -> Result[OptimizationResult]:
        """
        Improve a valid seed by local search.

        Args:
            seed: Constraint-valid starting state

        Returns:
            Result with the OptimizationResult, or an INVALID_SEED failure whose
            details are the seed's violations
        """
        seed_validation = validate(seed, self.config.constraints)
        if not seed_validation.valid:
            logger.warning(
                f"Refusing to optimize invalid seed: {len(seed_validation.violations)} violation(s)"
            )
            return Result.fail(
                "Seed state is not valid",
                code=INVALID_SEED,
                details=seed_validation.violations,
            )

        start = self.clock()
        initial_score = self.score_fn(seed)
        current, current_score = seed, initial_score
        best, best_score = seed, initial_score

        iterations = 0
        stall = 0
        history: list[IterationRecord] = []
        evaluation: NeighborEvaluation | None = None
        stop_reason = STOP_MAX_ITERATIONS

        logger.info(
            f"Local search started: score={initial_score:.2f}, "
            f"max_iterations={self.config.max_iterations}, "
            f"max_stall={self.config.max_stall_iterations}, "
            f"budget={self.config.time_budget_seconds:.1f}s"
        )

        while True:
            if iterations >= self.config.max_iterations:
                stop_reason = STOP_MAX_ITERATIONS
                break
            if self.clock() - start >= self.config.time_budget_seconds:
                stop_reason = STOP_TIME_BUDGET
                break

            # An unchanged walk state has an unchanged neighborhood
            if evaluation is None:
                evaluation = self.evaluate(current)
            iterations += 1

            if evaluation.best_state is None:
                history.append(
                    IterationRecord(
                        iterations,
                        current_score,
                        evaluation.candidates,
                        evaluation.valid,
                        evaluation.pruned,
                        moved=False,
                    )
                )
                stop_reason = STOP_NO_NEIGHBORS
                break

            moved = evaluation.best_score > current_score
            history.append(
                IterationRecord(
                    iterations,
                    evaluation.best_score if moved else current_score,
                    evaluation.candidates,
                    evaluation.valid,
                    evaluation.pruned,
                    moved,
                    evaluation.best_swap if moved else None,
                )
            )

            if moved:
                logger.debug(
                    f"Iteration {iterations}: {evaluation.best_swap} "
                    f"{current_score:.2f} -> {evaluation.best_score:.2f}"
                )
                current, current_score = evaluation.best_state, evaluation.best_score
                evaluation = None
                stall = 0
                if current_score > best_score:
                    best, best_score = current, current_score
            else:
                stall += 1
                if stall >= self.config.max_stall_iterations:
                    stop_reason = STOP_STALLED
                    break

        elapsed = self.clock() - start
        logger.info(
            f"Local search finished ({stop_reason}): {iterations} iterations, "
            f"score {initial_score:.2f} -> {best_score:.2f} in {elapsed:.3f}s"
        )

        return Result.ok(
            OptimizationResult(
                initial_state=seed,
                final_state=best.with_score(best_score),
                initial_score=initial_score,
                final_score=best_score,
                iterations=iterations,
                improved=best_score > initial_score,
                stop_reason=stop_reason,
                elapsed_seconds=elapsed,
                history=tuple(history),
            )
        )


def optimize(
    seed: AssignmentState,
    score_fn: ScoreFn,
    config: SearchConfig | None = None,
    clock: Clock = time.monotonic,
) -> Result[OptimizationResult]:
    """Run LocalSearchOptimizer once over a seed."""
    return LocalSearchOptimizer(score_fn, config, clock).optimize(seed)
