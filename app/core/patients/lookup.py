"""
Patient record lookup.

One parameterized read against the external patient store. Records are
returned as plain dicts (column name -> value); this service never writes.
"""

import logging
from typing import Any

from sqlalchemy import column, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)


class PatientLookup:
    """Reads patient records by identifier."""

    def __init__(
        self,
        engine: AsyncEngine,
        table_name: str = "Patients",
        id_column: str = "patient_id",
    ):
        """Initialize lookup.

        Args:
            engine: Shared async engine for the patient store
            table_name: Table holding patient records
            id_column: Column matched against the requested identifier
        """
        self.engine = engine
        self._table = table(table_name, column(id_column))
        self._id_column = self._table.c[id_column]

    async def get_patient(self, patient_id: str) -> dict[str, Any]:
        """Fetch a single patient record.

        The identifier is bound as a query parameter, never formatted
        into SQL.

        Args:
            patient_id: Identifier taken verbatim from the request

        Returns:
            The matching record as a dict

        Raises:
            NotFoundError: No record matches
            StoreError: The store is unreachable or the query failed
        """
        query = (
            select(literal_column("*"))
            .select_from(self._table)
            .where(self._id_column == patient_id)
        )

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(query)
                row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error(f"Patient query failed: {e}")
            raise StoreError("Database query error") from e

        if row is None:
            raise NotFoundError("Patient not found")

        return dict(row)
