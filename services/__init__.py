"""
Application services layer.

Services orchestrate the seed builder, optimizer and domain services. The
seeder and optimizer import Result from here, so this package only exposes
the leaf modules eagerly; import RaidCompositionService from
services.raid_composition_service.
"""

# Result type for consistent error handling
from services.result import Result

__all__ = ["Result"]
