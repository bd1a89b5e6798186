"""Pytest configuration and fixtures."""
import pytest
import tempfile
import shutil
from pathlib import Path
import pandas as pd
from cityzip.core.aliases import AliasSeeder
from cityzip.core.duckdb_store import DuckDBStore
from cityzip.core.importer import ZipCodeImporter
from cityzip.core.models import PostalRecord
from cityzip.core.normalization import normalize_city
from cityzip.core.resolver import Resolver
from cityzip.core.snapshot import ReferenceSnapshot
from cityzip.sources.csv_provider import CSVProvider


SAMPLE_POSTAL_CODES = [
    {"postnr": "0800", "city": "Høje Taastrup", "lat": 55.66, "lon": 12.27},
    {"postnr": "1150", "city": "København K", "lat": 55.68, "lon": 12.57},
    {"postnr": "1151", "city": "København K", "lat": 55.68, "lon": 12.57},
    {"postnr": "1160", "city": "København K", "lat": 55.68, "lon": 12.57},
    {"postnr": "1800", "city": "Frederiksberg C", "lat": 55.68, "lon": 12.53},
    {"postnr": "2000", "city": "Frederiksberg", "lat": 55.68, "lon": 12.52},
    {"postnr": "2100", "city": "København Ø", "lat": 55.71, "lon": 12.58},
    {"postnr": "2200", "city": "København N", "lat": 55.70, "lon": 12.55},
    {"postnr": "2610", "city": "Rødovre", "lat": 55.68, "lon": 12.45},
    {"postnr": "2630", "city": "Taastrup", "lat": 55.65, "lon": 12.30},
    {"postnr": "2700", "city": "Brønshøj", "lat": 55.71, "lon": 12.49},
    {"postnr": "2800", "city": "Kongens Lyngby", "lat": 55.77, "lon": 12.50},
    {"postnr": "4000", "city": "Roskilde", "lat": 55.64, "lon": 12.08},
    {"postnr": "5000", "city": "Odense C", "lat": 55.40, "lon": 10.39},
    {"postnr": "8000", "city": "Aarhus C", "lat": 56.15, "lon": 10.21},
    {"postnr": "8200", "city": "Aarhus N", "lat": 56.18, "lon": 10.19},
    {"postnr": "9000", "city": "Aalborg", "lat": 57.05, "lon": 9.92},
]


@pytest.fixture
def temp_db():
    """Create temporary DuckDB database."""
    temp_dir = tempfile.mkdtemp()
    db_path = Path(temp_dir) / "test.duckdb"
    db_store = DuckDBStore(db_path)
    yield db_store
    db_store.close()
    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_csv(tmp_path):
    """Write sample postal codes to a CSV file."""
    csv_path = tmp_path / "postnumre.csv"
    pd.DataFrame(SAMPLE_POSTAL_CODES).to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture
def populated_db(temp_db, sample_csv):
    """Create database with sample postal codes and seeded aliases."""
    ZipCodeImporter(temp_db).run(CSVProvider(sample_csv))
    AliasSeeder().seed(temp_db)
    return temp_db


@pytest.fixture
def resolver(populated_db):
    """Create resolver over the populated database."""
    return Resolver(populated_db)


@pytest.fixture
def snapshot(populated_db):
    """Load an in-memory snapshot of the populated database."""
    return ReferenceSnapshot.from_store(populated_db)


@pytest.fixture
def make_record():
    """Factory for postal records that do not need the importer."""
    def _make(postal_code: str, city: str, weight: int = 1, base_city: str = None) -> PostalRecord:
        return PostalRecord(
            postal_code=postal_code,
            canonical_city=city,
            normalized_city=normalize_city(city),
            weight=weight,
            base_city=base_city,
            normalized_base_city=normalize_city(base_city) if base_city else None,
        )
    return _make
