"""
Patient API Endpoint.

Looks up a single patient record by identifier.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.api.dependencies import get_patient_lookup
from app.core.patients.lookup import PatientLookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/patient", tags=["Patients"])


class ErrorResponse(BaseModel):
    """Error response."""

    error: str


@router.get(
    "/{patient_id}",
    status_code=status.HTTP_200_OK,
    summary="Get a patient record",
    description="Fetch the patient record whose identifier matches the path.",
    responses={
        200: {"description": "The patient record"},
        404: {"model": ErrorResponse, "description": "Patient not found"},
        500: {"model": ErrorResponse, "description": "Database query error"},
    },
)
async def get_patient(
    patient_id: str,
    lookup: PatientLookup = Depends(get_patient_lookup),
) -> dict[str, Any]:
    """Return the record as stored; columns pass through unchanged."""
    return await lookup.get_patient(patient_id)
