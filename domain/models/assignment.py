"""
Immutable assignment state model.

Every transformation returns a new value. Unchanged groups and slots are
shared between successive states, so a swap only rebuilds the groups it
touches.
"""

from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from domain.models.player import Archetype, Player, PlayerStatus, Role


def mean_gear_score(players: Sequence[Player]) -> int:
    if not players:
        return 0
    return round(sum(p.gear_score for p in players) / len(players))


@dataclass(frozen=True, order=True)
class Position:
    """Address of a single slot: group id plus slot index."""

    group_id: int
    slot_index: int

    def __str__(self) -> str:
        return f"G{self.group_id}:{self.slot_index}"


@dataclass(frozen=True)
class Slot:
    """A single position inside a group, holding at most one player."""

    index: int
    player: Player | None = None

    @property
    def is_empty(self) -> bool:
        return self.player is None

    def with_player(self, player: Player | None) -> "Slot":
        return Slot(self.index, player)


@dataclass(frozen=True)
class Group:
    """
    A raid group: stable id plus a fixed-size ordered tuple of slots.

    Counts are derived on demand and never stored.
    """

    id: int
    slots: tuple[Slot, ...] = ()

    @classmethod
    def create_empty(cls, group_id: int, capacity: int = 5) -> "Group":
        """Create a group with `capacity` empty slots."""
        return cls(group_id, tuple(Slot(i) for i in range(capacity)))

    @property
    def capacity(self) -> int:
        return len(self.slots)

    @property
    def players(self) -> tuple[Player, ...]:
        return tuple(slot.player for slot in self.slots if slot.player is not None)

    @property
    def filled_count(self) -> int:
        return sum(1 for slot in self.slots if not slot.is_empty)

    @property
    def empty_count(self) -> int:
        return self.capacity - self.filled_count

    @property
    def is_full(self) -> bool:
        return self.empty_count == 0

    @property
    def is_empty(self) -> bool:
        return self.filled_count == 0

    @property
    def first_empty_slot_index(self) -> int | None:
        for slot in self.slots:
            if slot.is_empty:
                return slot.index
        return None

    def player_at(self, slot_index: int) -> Player | None:
        """Player in the slot, or None for an empty or out-of-range slot."""
        if slot_index < 0 or slot_index >= len(self.slots):
            return None
        return self.slots[slot_index].player

    def with_player_at(self, slot_index: int, player: Player | None) -> "Group":
        """
        Return a new group with the slot set to `player`.

        Raises:
            ValueError: If the slot index is out of range
        """
        if slot_index < 0 or slot_index >= len(self.slots):
            raise ValueError(f"Invalid slot index {slot_index} for group {self.id}")
        slots = list(self.slots)
        slots[slot_index] = slots[slot_index].with_player(player)
        return Group(self.id, tuple(slots))

    def without_player_at(self, slot_index: int) -> "Group":
        return self.with_player_at(slot_index, None)

    def role_counts(self) -> dict[Role, int]:
        """Count players by role. Players without a role are not counted."""
        counts = dict.fromkeys(Role, 0)
        for player in self.players:
            if player.role is not None:
                counts[player.role] += 1
        return counts

    def archetype_counts(self) -> dict[Archetype, int]:
        return dict(Counter(p.archetype for p in self.players if p.archetype is not None))

    @property
    def average_gear_score(self) -> int:
        return mean_gear_score(self.players)

    def has_player(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.players)

    def __str__(self) -> str:
        names = ", ".join(p.name for p in self.players) or "empty"
        return f"Group {self.id}: {names}"


@dataclass(frozen=True)
class AssignmentState:
    """
    One complete candidate placement: groups plus the unassigned bench.

    `score` and `violations` are non-authoritative metadata. They are left out
    of equality and hashing so two states with the same placement compare
    equal regardless of what was last computed for them. Any placement change
    clears them.
    """

    groups: tuple[Group, ...] = ()
    bench: tuple[Player, ...] = ()
    score: float | None = field(default=None, compare=False)
    violations: tuple[Any, ...] = field(default=(), compare=False)

    @classmethod
    def create_empty(cls, group_count: int = 8, capacity: int = 5) -> "AssignmentState":
        """Create N empty groups (ids 1..N) with an empty bench."""
        return cls(tuple(Group.create_empty(i + 1, capacity) for i in range(group_count)))

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def assigned_players(self) -> tuple[Player, ...]:
        """Players in groups, in group then slot order."""
        return tuple(p for group in self.groups for p in group.players)

    @property
    def all_players(self) -> tuple[Player, ...]:
        return self.assigned_players + self.bench

    @property
    def total_assigned(self) -> int:
        return sum(group.filled_count for group in self.groups)

    @property
    def average_gear_score(self) -> int:
        """Mean gear score of assigned players, rounded; 0 for an empty raid."""
        return mean_gear_score(self.assigned_players)

    def role_counts(self) -> dict[Role, int]:
        counts = dict.fromkeys(Role, 0)
        for player in self.assigned_players:
            if player.role is not None:
                counts[player.role] += 1
        return counts

    def archetype_counts(self) -> dict[Archetype, int]:
        return dict(
            Counter(p.archetype for p in self.assigned_players if p.archetype is not None)
        )

    def status_counts(self) -> dict[str, int]:
        """Statuses of assigned players, plus the bench size under 'bench'."""
        counts = {status.value: 0 for status in PlayerStatus}
        for player in self.assigned_players:
            counts[player.status.value] += 1
        counts["bench"] = len(self.bench)
        return counts

    def group(self, group_id: int) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def player_at(self, position: Position) -> Player | None:
        group = self.group(position.group_id)
        if group is None:
            return None
        return group.player_at(position.slot_index)

    def positions(self) -> Iterator[Position]:
        """All slot positions ordered by group id, then slot index."""
        for group in sorted(self.groups, key=lambda g: g.id):
            for slot in group.slots:
                yield Position(group.id, slot.index)

    def find_player(self, player_id: str) -> Position | None:
        for group in self.groups:
            for slot in group.slots:
                if slot.player is not None and slot.player.id == player_id:
                    return Position(group.id, slot.index)
        return None

    def has_player(self, player_id: str) -> bool:
        return self.find_player(player_id) is not None

    def is_benched(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.bench)

    # ------------------------------------------------------------------
    # Transformations (each returns a new state)
    # ------------------------------------------------------------------

    def _require_group(self, group_id: int) -> Group:
        group = self.group(group_id)
        if group is None:
            raise ValueError(f"Group {group_id} not found")
        return group

    def with_group(self, new_group: Group) -> "AssignmentState":
        """Replace the group sharing `new_group.id`; other groups are reused."""
        self._require_group(new_group.id)
        groups = tuple(new_group if g.id == new_group.id else g for g in self.groups)
        return AssignmentState(groups, self.bench)

    def with_player_at(
        self, group_id: int, slot_index: int, player: Player | None
    ) -> "AssignmentState":
        group = self._require_group(group_id)
        return self.with_group(group.with_player_at(slot_index, player))

    def without_player_at(self, group_id: int, slot_index: int) -> "AssignmentState":
        return self.with_player_at(group_id, slot_index, None)

    def with_bench(self, bench: tuple[Player, ...] | list[Player]) -> "AssignmentState":
        return AssignmentState(self.groups, tuple(bench))

    def with_player_benched(self, player: Player) -> "AssignmentState":
        return AssignmentState(self.groups, self.bench + (player,))

    def with_score(self, score: float) -> "AssignmentState":
        return replace(self, score=score)

    def with_violations(self, violations) -> "AssignmentState":
        return replace(self, violations=tuple(violations))

    def swap(self, pos_a: Position, pos_b: Position) -> "AssignmentState":
        """
        Exchange the occupants of two slots (either may be empty).

        Raises:
            ValueError: If a group or slot does not exist
        """
        group_a = self._require_group(pos_a.group_id)
        group_b = self._require_group(pos_b.group_id)
        for group, pos in ((group_a, pos_a), (group_b, pos_b)):
            if pos.slot_index < 0 or pos.slot_index >= group.capacity:
                raise ValueError(f"Invalid slot index {pos.slot_index} for group {group.id}")

        player_a = group_a.player_at(pos_a.slot_index)
        player_b = group_b.player_at(pos_b.slot_index)

        if pos_a.group_id == pos_b.group_id:
            swapped = group_a.with_player_at(pos_a.slot_index, player_b).with_player_at(
                pos_b.slot_index, player_a
            )
            return self.with_group(swapped)

        state = self.with_group(group_a.with_player_at(pos_a.slot_index, player_b))
        return state.with_group(group_b.with_player_at(pos_b.slot_index, player_a))

    def __str__(self) -> str:
        lines = [str(group) for group in self.groups]
        bench = ", ".join(p.name for p in self.bench) or "empty"
        lines.append(f"Bench: {bench}")
        return "\n".join(lines)
