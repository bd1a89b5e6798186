"""DuckDB storage layer for postal reference data."""
import duckdb
from pathlib import Path
from typing import List, Dict, Optional, Any, Iterable, Tuple
from datetime import datetime
from cityzip.core.config import DUCKDB_PATH, TABLE_NAMES
from cityzip.core.errors import ReferenceStoreError
from cityzip.core.models import PostalRecord, CityAlias
from cityzip.core.reference_store import ReferenceStore


RECORD_COLUMNS = (
    "postal_code, canonical_city, normalized_city, weight, latitude, longitude, "
    "base_city, normalized_base_city"
)


class DuckDBStore(ReferenceStore):
    """
    DuckDB storage manager for postal codes and city aliases.

    A DuckDB connection must not be shared between threads; batch workers
    should read from a ReferenceSnapshot loaded from this store instead.
    """

    def __init__(self, db_path: Optional[Path] = None, read_only: bool = False):
        """
        Initialize DuckDB connection.

        Args:
            db_path: Path to DuckDB database file (":memory:" for a private in-memory database)
            read_only: Open the database read-only (schema must already exist)
        """
        self.db_path = db_path or DUCKDB_PATH
        self.read_only = read_only
        try:
            if str(self.db_path) != ":memory:" and not read_only:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = duckdb.connect(str(self.db_path), read_only=read_only)
        except (duckdb.Error, OSError) as e:
            raise ReferenceStoreError(f"Could not open reference store at {self.db_path}: {e}") from e
        if not read_only:
            self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAMES['zip_codes']} (
                postal_code VARCHAR PRIMARY KEY,
                canonical_city VARCHAR NOT NULL,
                normalized_city VARCHAR NOT NULL,
                weight INTEGER DEFAULT 0,
                latitude DOUBLE,
                longitude DOUBLE,
                base_city VARCHAR,
                normalized_base_city VARCHAR,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAMES['city_aliases']} (
                alias VARCHAR PRIMARY KEY,
                normalized_city VARCHAR NOT NULL
            )
        """)

        # Create indexes
        self._execute(
            f"CREATE INDEX IF NOT EXISTS idx_zip_codes_city ON {TABLE_NAMES['zip_codes']}(normalized_city)"
        )
        self._execute(
            f"CREATE INDEX IF NOT EXISTS idx_zip_codes_base_city ON {TABLE_NAMES['zip_codes']}(normalized_base_city)"
        )
        self._execute(
            f"CREATE INDEX IF NOT EXISTS idx_city_aliases_city ON {TABLE_NAMES['city_aliases']}(normalized_city)"
        )

    def _execute(self, sql: str, params: Optional[List[Any]] = None):
        try:
            return self.conn.execute(sql, params or [])
        except duckdb.Error as e:
            raise ReferenceStoreError(f"Reference store query failed: {e}") from e

    @staticmethod
    def _row_to_record(row: Tuple) -> PostalRecord:
        return PostalRecord(
            postal_code=row[0],
            canonical_city=row[1],
            normalized_city=row[2],
            weight=row[3] if row[3] is not None else 0,
            latitude=row[4],
            longitude=row[5],
            base_city=row[6],
            normalized_base_city=row[7],
        )

    def find_by_normalized_city(self, normalized: str) -> List[PostalRecord]:
        """Find postal records for a city, falling back to base city matches."""
        if not normalized:
            return []

        rows = self._execute(f"""
            SELECT {RECORD_COLUMNS}
            FROM {TABLE_NAMES['zip_codes']}
            WHERE normalized_city = ?
            ORDER BY postal_code
        """, [normalized]).fetchall()

        if not rows:
            rows = self._execute(f"""
                SELECT {RECORD_COLUMNS}
                FROM {TABLE_NAMES['zip_codes']}
                WHERE normalized_base_city = ?
                ORDER BY postal_code
            """, [normalized]).fetchall()

        return [self._row_to_record(row) for row in rows]

    def find_alias(self, normalized: str) -> Optional[str]:
        """Resolve a normalized alias to its normalized city."""
        if not normalized:
            return None

        result = self._execute(f"""
            SELECT normalized_city
            FROM {TABLE_NAMES['city_aliases']}
            WHERE alias = ?
        """, [normalized]).fetchone()

        return result[0] if result else None

    def find_aliases_for(self, normalized_city: str) -> List[str]:
        """Get all aliases pointing at a normalized city."""
        rows = self._execute(f"""
            SELECT alias
            FROM {TABLE_NAMES['city_aliases']}
            WHERE normalized_city = ?
            ORDER BY alias
        """, [normalized_city]).fetchall()
        return [row[0] for row in rows]

    def get_record(self, postal_code: str) -> Optional[PostalRecord]:
        """Get a single postal record by code."""
        row = self._execute(f"""
            SELECT {RECORD_COLUMNS}
            FROM {TABLE_NAMES['zip_codes']}
            WHERE postal_code = ?
        """, [postal_code]).fetchone()
        return self._row_to_record(row) if row else None

    def known_cities(self) -> List[str]:
        """Get every normalized city and base city name."""
        rows = self._execute(f"""
            SELECT normalized_city FROM {TABLE_NAMES['zip_codes']}
            UNION
            SELECT normalized_base_city FROM {TABLE_NAMES['zip_codes']}
            WHERE normalized_base_city IS NOT NULL
            ORDER BY 1
        """).fetchall()
        return [row[0] for row in rows]

    def all_records(self) -> List[PostalRecord]:
        """Get all postal records ordered by postal code."""
        rows = self._execute(f"""
            SELECT {RECORD_COLUMNS}
            FROM {TABLE_NAMES['zip_codes']}
            ORDER BY postal_code
        """).fetchall()
        return [self._row_to_record(row) for row in rows]

    def all_aliases(self) -> List[CityAlias]:
        """Get all aliases ordered by alias."""
        rows = self._execute(f"""
            SELECT alias, normalized_city
            FROM {TABLE_NAMES['city_aliases']}
            ORDER BY alias
        """).fetchall()
        return [CityAlias(alias=row[0], normalized_city=row[1]) for row in rows]

    def upsert_postal_records(self, records: Iterable[PostalRecord]) -> Tuple[int, int]:
        """
        Insert or update postal records in one transaction.

        Re-importing the same records leaves the table unchanged.

        Args:
            records: Postal records keyed by postal code

        Returns:
            Tuple (inserted, updated)
        """
        records = list(records)
        if not records:
            return 0, 0

        existing = {
            row[0] for row in self._execute(
                f"SELECT postal_code FROM {TABLE_NAMES['zip_codes']}"
            ).fetchall()
        }

        now = datetime.now()
        rows = [
            (
                r.postal_code,
                r.canonical_city,
                r.normalized_city,
                r.weight,
                r.latitude,
                r.longitude,
                r.base_city,
                r.normalized_base_city,
                now,
            )
            for r in records
        ]

        # Last record for a postal code wins
        rows = list({row[0]: row for row in rows}.values())

        # Indexed columns cannot be assigned in ON CONFLICT DO UPDATE, so
        # replace rows with delete + insert inside one transaction
        try:
            self.conn.begin()
            self.conn.execute(
                f"DELETE FROM {TABLE_NAMES['zip_codes']} WHERE list_contains(?, postal_code)",
                [[row[0] for row in rows]]
            )
            self.conn.executemany(f"""
                INSERT INTO {TABLE_NAMES['zip_codes']}
                ({RECORD_COLUMNS}, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, rows)
            self.conn.commit()
        except duckdb.Error as e:
            self.conn.rollback()
            raise ReferenceStoreError(f"Failed to upsert postal records: {e}") from e

        codes = {r.postal_code for r in records}
        inserted = len(codes - existing)
        return inserted, len(codes) - inserted

    def upsert_aliases(self, aliases: Iterable[CityAlias]) -> int:
        """
        Insert or update city aliases in one transaction.

        Args:
            aliases: Aliases keyed by alias

        Returns:
            Number of distinct aliases written
        """
        # Last mapping for an alias wins
        by_alias: Dict[str, str] = {}
        for a in aliases:
            by_alias[a.alias] = a.normalized_city
        if not by_alias:
            return 0

        try:
            self.conn.begin()
            self.conn.execute(
                f"DELETE FROM {TABLE_NAMES['city_aliases']} WHERE list_contains(?, alias)",
                [list(by_alias)]
            )
            self.conn.executemany(f"""
                INSERT INTO {TABLE_NAMES['city_aliases']} (alias, normalized_city)
                VALUES (?, ?)
            """, list(by_alias.items()))
            self.conn.commit()
        except duckdb.Error as e:
            self.conn.rollback()
            raise ReferenceStoreError(f"Failed to upsert city aliases: {e}") from e

        return len(by_alias)

    def get_stats(self) -> Dict[str, Any]:
        """Get reference data statistics."""
        zip_count = self._execute(f"SELECT COUNT(*) FROM {TABLE_NAMES['zip_codes']}").fetchone()[0]
        city_count = self._execute(
            f"SELECT COUNT(DISTINCT normalized_city) FROM {TABLE_NAMES['zip_codes']}"
        ).fetchone()[0]
        alias_count = self._execute(f"SELECT COUNT(*) FROM {TABLE_NAMES['city_aliases']}").fetchone()[0]

        return {
            "zip_codes": zip_count,
            "cities": city_count,
            "aliases": alias_count,
        }

    def close(self):
        """Close database connection."""
        self.conn.close()
