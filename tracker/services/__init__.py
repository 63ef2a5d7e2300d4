"""Service layer for business logic."""

from tracker.services.tracker_service import TrackerService

__all__ = [
    "TrackerService",
]
