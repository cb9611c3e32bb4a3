"""
Centralized configuration for the raid composition engine.

Only the service layer reads these values; the domain, seeder and optimizer
receive plain config objects.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_optional_int(env_var: str, default: int | None) -> int | None:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


# Hard constraints
RAID_CONSTRAINT_SETTINGS: dict[str, Any] = {
    "max_raid_size": _parse_int("RAID_MAX_SIZE", 40),
    "min_tanks": _parse_int("RAID_MIN_TANKS", 2),
    "min_healers": _parse_int("RAID_MIN_HEALERS", 5),
    "group_capacity": _parse_int("RAID_GROUP_CAPACITY", 5),
    # Unset = derived from max raid size and group capacity
    "group_count": _parse_optional_int("RAID_GROUP_COUNT", None),
    "max_tanks_per_group": _parse_int("RAID_MAX_TANKS_PER_GROUP", 1),
    "max_healers_per_group": _parse_int("RAID_MAX_HEALERS_PER_GROUP", 2),
}

# Scoring weights (negative = penalty)
SCORING_WEIGHT_SETTINGS: dict[str, Any] = {
    "group_synergy": _parse_float("SCORE_GROUP_SYNERGY", 0.1),
    "windfury_melee_bonus": _parse_float("SCORE_WINDFURY_MELEE_BONUS", 10.0),
    "shaman_healer_distribution": _parse_float("SCORE_SHAMAN_HEALER_DISTRIBUTION", 5.0),
    "paladin_buff_distribution": _parse_float("SCORE_PALADIN_BUFF_DISTRIBUTION", 5.0),
    "even_healer_spread": _parse_float("SCORE_EVEN_HEALER_SPREAD", 8.0),
    "tank_support_coverage": _parse_float("SCORE_TANK_SUPPORT_COVERAGE", 6.0),
    "same_archetype_in_group": _parse_float("SCORE_SAME_ARCHETYPE_IN_GROUP", -3.0),
    "too_many_ranged_in_group": _parse_float("SCORE_TOO_MANY_RANGED_IN_GROUP", -2.0),
    "max_ranged_per_group": _parse_int("SCORE_MAX_RANGED_PER_GROUP", 3),
    "late_player_penalty": _parse_float("SCORE_LATE_PLAYER_PENALTY", -5.0),
    "tentative_player_penalty": _parse_float("SCORE_TENTATIVE_PLAYER_PENALTY", -2.0),
    "benching_penalty": _parse_float("SCORE_BENCHING_PENALTY", -1.0),
}

# Local search limits
SEARCH_SETTINGS: dict[str, Any] = {
    "max_iterations": _parse_int("SEARCH_MAX_ITERATIONS", 1000),
    "max_stall_iterations": _parse_int("SEARCH_MAX_STALL_ITERATIONS", 50),
    "time_budget_seconds": _parse_float("SEARCH_TIME_BUDGET_SECONDS", 5.0),
}

USE_SYNERGY_CACHE = _parse_bool("USE_SYNERGY_CACHE", True)
