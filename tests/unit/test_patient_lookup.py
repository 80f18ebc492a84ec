"""Tests for patient record lookup."""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.errors import NotFoundError, StoreError
from app.core.patients.lookup import PatientLookup


@pytest_asyncio.fixture
async def engine(tmp_path):
    """SQLite patient store with three records."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'patients.db'}")
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "CREATE TABLE Patients ("
                "patient_id TEXT PRIMARY KEY, name TEXT, email TEXT, phone TEXT)"
            )
        )
        await conn.execute(
            text(
                "INSERT INTO Patients (patient_id, name, email, phone) VALUES "
                "('P-001', 'Ana Ruiz', 'ana@example.com', '+15550001111'), "
                "('P-002', 'Ben Cole', 'ben@example.com', '+15550002222'), "
                "('P-003', 'Cy Park', 'cy@example.com', '+15550003333')"
            )
        )
    yield engine
    await engine.dispose()


@pytest.fixture
def lookup(engine):
    """Lookup against the default Patients table."""
    return PatientLookup(engine)


class TestPatientLookup:
    """Test PatientLookup."""

    @pytest.mark.asyncio
    async def test_returns_matching_record(self, lookup):
        """Test a known id returns exactly its record."""
        record = await lookup.get_patient("P-002")

        assert record == {
            "patient_id": "P-002",
            "name": "Ben Cole",
            "email": "ben@example.com",
            "phone": "+15550002222",
        }

    @pytest.mark.asyncio
    async def test_repeatable_read(self, lookup):
        """Test reading the same id twice gives the same record."""
        first = await lookup.get_patient("P-001")
        second = await lookup.get_patient("P-001")

        assert first == second

    @pytest.mark.asyncio
    async def test_missing_id_is_not_found(self, lookup):
        """Test an unknown id raises NotFoundError, not StoreError."""
        with pytest.raises(NotFoundError) as exc_info:
            await lookup.get_patient("P-999")

        assert not isinstance(exc_info.value, StoreError)
        assert exc_info.value.message == "Patient not found"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_identifier_is_bound_not_interpolated(self, lookup, engine):
        """Test SQL in the identifier is treated as a literal value."""
        with pytest.raises(NotFoundError):
            await lookup.get_patient("P-001' OR '1'='1")

        async with engine.connect() as conn:
            count = (await conn.execute(text("SELECT COUNT(*) FROM Patients"))).scalar()
        assert count == 3

    @pytest.mark.asyncio
    async def test_query_failure_is_store_error(self, engine):
        """Test a failing query raises StoreError."""
        lookup = PatientLookup(engine, table_name="NoSuchTable")

        with pytest.raises(StoreError) as exc_info:
            await lookup.get_patient("P-001")

        assert exc_info.value.message == "Database query error"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_custom_id_column(self, engine):
        """Test matching on a configured column."""
        lookup = PatientLookup(engine, id_column="email")

        record = await lookup.get_patient("cy@example.com")

        assert record["patient_id"] == "P-003"

    @pytest.mark.asyncio
    async def test_concurrent_lookups_do_not_interfere(self, lookup):
        """Test concurrent reads for different ids each get their own record."""
        ids = ["P-001", "P-002", "P-003"] * 5

        records = await asyncio.gather(*(lookup.get_patient(pid) for pid in ids))

        assert [r["patient_id"] for r in records] == ids
