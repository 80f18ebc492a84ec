"""
Patients Module

Read-only access to the external patient store.

Usage:
    from app.core.patients import PatientLookup

    lookup = PatientLookup(engine)
    record = await lookup.get_patient("P-001")
"""

from app.core.patients.lookup import PatientLookup

__all__ = ["PatientLookup"]
