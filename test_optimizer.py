"""
Unit tests for the local search optimizer.
"""

import dataclasses
import logging

import pytest

from domain.models.assignment import AssignmentState, Position
from domain.models.player import Archetype, Player, Role
from domain.services.constraint_service import ConstraintConfig, validate
from domain.services.scoring_service import ScoringWeights, create_scoring_function
from optimizer import (
    DEEP_SEARCH,
    QUICK_SEARCH,
    LocalSearchOptimizer,
    SearchConfig,
    SwapCandidate,
    generate_role_preserving_swaps,
    generate_swap_neighbors,
    optimize,
)
from seeder import build_seed
from services.error_codes import INVALID_SEED
from utils.synergy_cache import get_cached_pair_synergy

RELAXED = ConstraintConfig(
    max_raid_size=4, min_tanks=0, min_healers=0, group_capacity=2, group_count=2
)

SYNERGY_ONLY = dataclasses.replace(
    ScoringWeights(
        **{
            f.name: 0
            for f in dataclasses.fields(ScoringWeights)
            if f.name != "max_ranged_per_group"
        }
    ),
    group_synergy=1,
)


class FakeClock:
    """Monotonic clock that advances a fixed step on every read."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def frozen_clock() -> float:
    return 0.0


def dps(player_id: str, archetype: Archetype) -> Player:
    return Player(id=player_id, name=player_id, archetype=archetype, role=Role.DPS)


def tank(player_id: str) -> Player:
    return Player(id=player_id, name=player_id, archetype=Archetype.WARRIOR, role=Role.TANK)


def two_pair_state() -> AssignmentState:
    """g1 = [rogue A, mage B], g2 = [rogue C, balance druid D]."""
    state = AssignmentState.create_empty(2, 2)
    state = state.with_player_at(1, 0, dps("A", Archetype.ROGUE))
    state = state.with_player_at(1, 1, dps("B", Archetype.MAGE))
    state = state.with_player_at(2, 0, dps("C", Archetype.ROGUE))
    return state.with_player_at(2, 1, dps("D", Archetype.BALANCE_DRUID))


def search(**kwargs) -> SearchConfig:
    kwargs.setdefault("constraints", RELAXED)
    return SearchConfig(**kwargs)


class TestSearchConfig:
    def test_defaults(self):
        config = SearchConfig()
        assert config.max_iterations == 1000
        assert config.max_stall_iterations == 50
        assert config.time_budget_seconds == 5.0
        assert config.constraints == ConstraintConfig()

    def test_presets(self):
        """Quick and deep presets trade time for search depth."""
        assert (QUICK_SEARCH.max_iterations, QUICK_SEARCH.max_stall_iterations) == (100, 20)
        assert QUICK_SEARCH.time_budget_seconds == 1.0
        assert (DEEP_SEARCH.max_iterations, DEEP_SEARCH.max_stall_iterations) == (5000, 200)
        assert DEEP_SEARCH.time_budget_seconds == 30.0


class TestNeighborGeneration:
    """Tests for swap neighborhood enumeration."""

    def test_all_pairs_in_position_order(self):
        swaps = generate_swap_neighbors(two_pair_state())
        assert swaps[0] == SwapCandidate(Position(1, 0), Position(1, 1))
        assert swaps[-1] == SwapCandidate(Position(2, 0), Position(2, 1))
        assert len(swaps) == 6

    def test_skips_pairs_of_empty_slots(self):
        state = AssignmentState.create_empty(2, 2).with_player_at(1, 0, dps("A", Archetype.ROGUE))
        swaps = generate_swap_neighbors(state)
        assert len(swaps) == 3
        assert all(Position(1, 0) in (s.pos_a, s.pos_b) for s in swaps)

    def test_tank_dps_swap_is_filtered(self):
        """Swaps that would change a slot's role are not role-preserving."""
        state = AssignmentState.create_empty(2, 2)
        state = state.with_player_at(1, 0, tank("T"))
        state = state.with_player_at(2, 0, dps("D", Archetype.ROGUE))
        swaps = generate_role_preserving_swaps(state)
        assert SwapCandidate(Position(1, 0), Position(2, 0)) not in swaps
        # Moves into empty slots are kept
        assert SwapCandidate(Position(1, 0), Position(1, 1)) in swaps

    def test_class_methods_mirror_functions(self):
        optimizer = LocalSearchOptimizer(lambda s: 0.0, search())
        state = two_pair_state()
        assert optimizer.generate_swaps(state) == generate_swap_neighbors(state)
        assert optimizer.role_preserving_swaps(state) == generate_role_preserving_swaps(state)


class TestEvaluate:
    def test_invalid_neighbors_are_pruned(self):
        """A tank move into a group already holding a tank is never scored."""
        constraints = ConstraintConfig(
            max_raid_size=4, min_tanks=2, min_healers=0, group_capacity=2, group_count=2
        )
        state = AssignmentState.create_empty(2, 2)
        state = state.with_player_at(1, 0, tank("T1"))
        state = state.with_player_at(2, 0, tank("T2"))
        scored = []

        def score_fn(s):
            scored.append(s)
            return 0.0

        optimizer = LocalSearchOptimizer(score_fn, SearchConfig(constraints=constraints))
        evaluation = optimizer.evaluate(state)
        # Moving either tank into the other group breaks the tank cap
        assert evaluation.candidates == 5
        assert evaluation.valid == 3
        assert evaluation.pruned == 2
        assert len(scored) == 3
        assert all(validate(s, constraints).valid for s in scored)

    def test_each_neighbor_is_built_once(self, monkeypatch):
        """The state that is validated is the same one that gets scored."""
        built = []
        original_swap = AssignmentState.swap

        def counting_swap(self, pos_a, pos_b):
            neighbor = original_swap(self, pos_a, pos_b)
            built.append(neighbor)
            return neighbor

        monkeypatch.setattr(AssignmentState, "swap", counting_swap)
        scored = []

        def score_fn(s):
            scored.append(s)
            return 0.0

        evaluation = LocalSearchOptimizer(score_fn, search()).evaluate(two_pair_state())
        assert len(built) == evaluation.candidates == 6
        assert all(any(s is b for b in built) for s in scored)

    def test_first_best_neighbor_wins_ties(self):
        score_fn = create_scoring_function(SYNERGY_ONLY)
        evaluation = LocalSearchOptimizer(score_fn, search()).evaluate(two_pair_state())
        assert evaluation.best_swap == SwapCandidate(Position(1, 0), Position(2, 1))
        assert evaluation.best_score == 50


class TestLocalSearch:
    """Tests for the hill-climbing loop."""

    def test_improvement_scenario(self):
        """Swapping A and D pairs the rogues and the mage with the moonkin."""
        score_fn = create_scoring_function(SYNERGY_ONLY)
        result = optimize(two_pair_state(), score_fn, search(max_stall_iterations=3))
        assert result.success
        outcome = result.value

        assert outcome.initial_score == 0
        assert outcome.final_score == 50
        assert outcome.improved
        assert outcome.improvement == 50
        assert outcome.stop_reason == "stalled"
        assert outcome.iterations == 4

        final = outcome.final_state
        assert [p.id for p in final.group(1).players] == ["D", "B"]
        assert [p.id for p in final.group(2).players] == ["C", "A"]
        assert final.score == 50

    def test_history_records_each_iteration(self):
        score_fn = create_scoring_function(SYNERGY_ONLY)
        outcome = optimize(two_pair_state(), score_fn, search(max_stall_iterations=3)).unwrap()
        assert [r.moved for r in outcome.history] == [True, False, False, False]
        assert outcome.history[0].swap == SwapCandidate(Position(1, 0), Position(2, 1))
        assert outcome.history[0].candidates == 6
        assert outcome.history[0].valid == 6

    def test_max_iterations(self):
        score_fn = create_scoring_function(SYNERGY_ONLY)
        outcome = optimize(two_pair_state(), score_fn, search(max_iterations=1)).unwrap()
        assert outcome.iterations == 1
        assert outcome.stop_reason == "max_iterations"
        assert outcome.final_score == 50

    def test_time_budget_with_fake_clock(self):
        """The budget is checked before each iteration."""
        score_fn = create_scoring_function(SYNERGY_ONLY)
        config = search(time_budget_seconds=2.5, max_stall_iterations=100)
        outcome = optimize(two_pair_state(), score_fn, config, clock=FakeClock(1.0)).unwrap()
        assert outcome.stop_reason == "time_budget"
        assert outcome.iterations == 2

    def test_zero_budget_returns_seed(self):
        score_fn = create_scoring_function(SYNERGY_ONLY)
        seed = two_pair_state()
        config = search(time_budget_seconds=0)
        outcome = optimize(seed, score_fn, config, clock=FakeClock(1.0)).unwrap()
        assert outcome.iterations == 0
        assert outcome.final_state == seed
        assert not outcome.improved

    def test_no_neighbors(self):
        constraints = ConstraintConfig(
            max_raid_size=1, min_tanks=0, min_healers=0, group_capacity=1, group_count=1
        )
        state = AssignmentState.create_empty(1, 1).with_player_at(1, 0, dps("A", Archetype.MAGE))
        config = SearchConfig(constraints=constraints)
        outcome = optimize(state, lambda s: 0.0, config, clock=frozen_clock).unwrap()
        assert outcome.stop_reason == "no_neighbors"
        assert outcome.iterations == 1

    def test_invalid_seed_rejected(self):
        """An invalid seed is refused with its violations."""
        state = AssignmentState.create_empty(1, 2)
        state = state.with_player_at(1, 0, tank("T1")).with_player_at(1, 1, tank("T2"))
        result = optimize(state, lambda s: 0.0, search())
        assert not result.success
        assert result.error_code == INVALID_SEED
        assert result.details[0].rule == "MAX_TANKS_PER_GROUP"

    def test_logs_summary(self, caplog):
        score_fn = create_scoring_function(SYNERGY_ONLY)
        with caplog.at_level(logging.INFO, logger="raidcomp.optimizer"):
            optimize(two_pair_state(), score_fn, search(max_stall_iterations=3))
        assert "Local search finished (stalled)" in caplog.text


class TestSearchProperties:
    """Properties over a realistic 25-player raid."""

    @pytest.fixture
    def raid(self):
        archetypes = [
            Archetype.ROGUE,
            Archetype.MAGE,
            Archetype.WARLOCK,
            Archetype.HUNTER,
            Archetype.ENHANCEMENT_SHAMAN,
            Archetype.SHADOW_PRIEST,
            Archetype.BALANCE_DRUID,
            Archetype.WARRIOR,
        ]
        healers = [Archetype.PRIEST, Archetype.SHAMAN, Archetype.PALADIN, Archetype.DRUID]
        players = [tank(f"t{i}") for i in range(3)]
        players += [
            Player(id=f"h{i}", name=f"h{i}", archetype=healers[i % 4], role=Role.HEALER)
            for i in range(7)
        ]
        players += [dps(f"d{i}", archetypes[i % len(archetypes)]) for i in range(17)]
        constraints = ConstraintConfig(max_raid_size=25)
        seed = build_seed(players, constraints).unwrap()
        config = SearchConfig(max_iterations=15, max_stall_iterations=5, constraints=constraints)
        return seed, config

    def test_result_is_valid(self, raid):
        """Search only ever returns constraint-valid states."""
        seed, config = raid
        outcome = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        assert validate(outcome.final_state, config.constraints).valid

    def test_score_never_decreases(self, raid):
        seed, config = raid
        outcome = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        assert outcome.final_score >= outcome.initial_score

    def test_deterministic(self, raid):
        """Identical inputs give identical final states and scores."""
        seed, config = raid
        first = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        second = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        assert first.final_state == second.final_state
        assert first.final_score == second.final_score
        assert first.iterations == second.iterations

    def test_players_preserved(self, raid):
        """Search moves players around but never adds, drops or duplicates them."""
        seed, config = raid
        outcome = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        before = sorted(p.id for p in seed.all_players)
        after = [p.id for p in outcome.final_state.all_players]
        assert sorted(after) == before
        assert len(after) == len(set(after))

    def test_cached_synergy_gives_same_result(self, raid):
        seed, config = raid
        plain = optimize(seed, create_scoring_function(), config, clock=frozen_clock).unwrap()
        cached_fn = create_scoring_function(pair_fn=get_cached_pair_synergy)
        cached = optimize(seed, cached_fn, config, clock=frozen_clock).unwrap()
        assert cached.final_state == plain.final_state
        assert cached.final_score == pytest.approx(plain.final_score)
