"""
Domain services containing pure raid composition logic.
"""

from domain.services.constraint_service import (
    ConstraintConfig,
    ValidationResult,
    Violation,
    ViolationLevel,
    is_valid,
    validate,
    validate_swap,
)
from domain.services.scoring_service import (
    ScoringWeights,
    compare_states,
    create_scoring_function,
    score,
    score_breakdown,
)
from domain.services.synergy_service import (
    group_composition_bonus,
    group_synergy,
    pair_synergy,
)

__all__ = [
    "ConstraintConfig",
    "ScoringWeights",
    "ValidationResult",
    "Violation",
    "ViolationLevel",
    "compare_states",
    "create_scoring_function",
    "group_composition_bonus",
    "group_synergy",
    "is_valid",
    "pair_synergy",
    "score",
    "score_breakdown",
    "validate",
    "validate_swap",
]
