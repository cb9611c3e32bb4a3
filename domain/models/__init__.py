"""
Domain models - pure value types for raid composition.
"""

from domain.models.assignment import AssignmentState, Group, Position, Slot
from domain.models.player import Archetype, Player, PlayerStatus, Role

__all__ = [
    "Archetype",
    "AssignmentState",
    "Group",
    "Player",
    "PlayerStatus",
    "Position",
    "Role",
    "Slot",
]
