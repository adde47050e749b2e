"""Navigation - walking, lodestone and item teleports with cancellation."""

from .service import (
    DIRECT_TOLERANCE,
    PATH_THRESHOLD,
    PATH_TOLERANCE,
    GoalKind,
    NavigationOutcome,
    NavigationService,
)

__all__ = [
    "DIRECT_TOLERANCE",
    "PATH_THRESHOLD",
    "PATH_TOLERANCE",
    "GoalKind",
    "NavigationOutcome",
    "NavigationService",
]
