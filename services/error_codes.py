"""
Standard error codes for the composition pipeline.

These error codes let callers programmatically handle specific failure
conditions without parsing error message text.

Usage:
    from services.error_codes import INFEASIBLE_ROSTER
    from services.result import Result

    if not feasibility.possible:
        return Result.fail(feasibility.reason, code=INFEASIBLE_ROSTER)
"""

# Roster errors
NO_PLAYERS = "no_players"
INFEASIBLE_ROSTER = "infeasible_roster"

# Seed errors
SEED_FAILED = "seed_failed"

# Search errors
INVALID_SEED = "invalid_seed"
