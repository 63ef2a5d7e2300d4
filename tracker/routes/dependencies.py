"""FastAPI dependencies resolving app-scoped services."""

from fastapi import Request

from tracker.services.tracker_service import TrackerService


def get_tracker_service(request: Request) -> TrackerService:
    """Dependency to get the tracker service bound to this app"""
    return request.app.state.tracker_service
