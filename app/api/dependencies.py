"""
FastAPI dependencies.

Shared clients are built once in the application lifespan and stored on
``app.state``; route handlers receive them through these functions, and
tests swap them out with ``app.dependency_overrides``.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.dispatch.service import NotificationService
from app.core.patients.lookup import PatientLookup


def get_engine(request: Request) -> AsyncEngine:
    """Shared engine for the patient store."""
    return request.app.state.engine


def get_patient_lookup(request: Request) -> PatientLookup:
    """Patient record lookup bound to the shared engine."""
    return request.app.state.patient_lookup


def get_notification_service(request: Request) -> NotificationService:
    """Notification dispatch bound to the shared provider clients."""
    return request.app.state.notification_service
