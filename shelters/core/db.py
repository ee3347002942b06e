"""PostgreSQL storage for shelters."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from psycopg2 import extras, pool

from shelters.core.models import ShelterRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "name",
    "address",
    "latitude",
    "longitude",
    "accommodation_capacity",
    "managing_agency",
    "contact_number",
    "designation_date",
    "facility_area",
)
_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM shelters"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS shelters (
    id BIGSERIAL PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    address TEXT NOT NULL DEFAULT '',
    latitude DOUBLE PRECISION,
    longitude DOUBLE PRECISION,
    accommodation_capacity INTEGER,
    managing_agency TEXT NOT NULL DEFAULT '',
    contact_number TEXT NOT NULL DEFAULT '',
    designation_date TEXT NOT NULL DEFAULT '',
    facility_area TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS shelters_lat_lng_idx ON shelters (latitude, longitude);
"""

_INSERT = f"INSERT INTO shelters ({', '.join(_COLUMNS)}) VALUES %s RETURNING id"

_IN_BOUNDING_BOX = f"""
{_SELECT}
WHERE latitude BETWEEN %(min_lat)s AND %(max_lat)s
  AND longitude BETWEEN %(min_lng)s AND %(max_lng)s
ORDER BY id
"""

# strpos keeps matching case-sensitive and treats % and _ literally.
_ADDRESS_CONTAINS = f"{_SELECT} WHERE strpos(address, %(text)s) > 0 ORDER BY id"
_NAME_CONTAINS = f"{_SELECT} WHERE strpos(name, %(text)s) > 0 ORDER BY id"


def _to_params(record: ShelterRecord) -> tuple:
    return (
        record.name or "",
        record.address or "",
        record.latitude,
        record.longitude,
        record.accommodation_capacity,
        record.managing_agency or "",
        record.contact_number or "",
        record.designation_date or "",
        record.facility_area or "",
    )


def _from_row(row: Dict[str, Any]) -> ShelterRecord:
    return ShelterRecord(
        id=row["id"],
        name=row["name"],
        address=row["address"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        accommodation_capacity=row["accommodation_capacity"],
        managing_agency=row["managing_agency"],
        contact_number=row["contact_number"],
        designation_date=row["designation_date"],
        facility_area=row["facility_area"],
    )


class PostgresShelterStore:
    def __init__(self, database_url: str, minconn: int = 1, maxconn: int = 5):
        if not database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        self.database_url = database_url
        self.minconn = minconn
        self.maxconn = maxconn
        self._pool: Optional[pool.ThreadedConnectionPool] = None

    def init_pool(self) -> pool.ThreadedConnectionPool:
        """Initialise and return the shared connection pool."""
        if self._pool is None:
            self._pool = pool.ThreadedConnectionPool(
                self.minconn,
                self.maxconn,
                dsn=self.database_url,
                connect_timeout=10,
            )
            logger.info("Database connection pool initialised")
        return self._pool

    @contextmanager
    def get_connection(self):
        """Context manager yielding a pooled connection."""
        pg_pool = self.init_pool()
        conn = pg_pool.getconn()
        try:
            yield conn
        finally:
            pg_pool.putconn(conn)

    def _query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[ShelterRecord]:
        with self.get_connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    rows = cur.fetchall()
            finally:
                conn.rollback()
        return [_from_row(row) for row in rows]

    def _insert(self, cur, records: Sequence[ShelterRecord]) -> List[ShelterRecord]:
        if not records:
            return []
        rows = extras.execute_values(cur, _INSERT, [_to_params(r) for r in records], fetch=True)
        return [record.with_id(row[0]) for record, row in zip(records, rows)]

    def ensure_schema(self) -> None:
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_CREATE_TABLE)
            conn.commit()

    def delete_all(self) -> None:
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM shelters")
            conn.commit()
        logger.info("Deleted all stored shelters")

    def save_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]:
        with self.get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    saved = self._insert(cur, records)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        logger.info("Saved %d shelters", len(saved))
        return saved

    def replace_all(self, records: Sequence[ShelterRecord]) -> List[ShelterRecord]:
        """Delete and insert in a single transaction."""
        with self.get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM shelters")
                    saved = self._insert(cur, records)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        logger.info("Replaced stored shelters with %d records", len(saved))
        return saved

    def find_all(self) -> List[ShelterRecord]:
        return self._query(f"{_SELECT} ORDER BY id")

    def find_by_id(self, record_id: int) -> Optional[ShelterRecord]:
        rows = self._query(f"{_SELECT} WHERE id = %(id)s", {"id": record_id})
        return rows[0] if rows else None

    def find_in_bounding_box(
        self, min_lat: float, max_lat: float, min_lng: float, max_lng: float
    ) -> List[ShelterRecord]:
        params = {"min_lat": min_lat, "max_lat": max_lat, "min_lng": min_lng, "max_lng": max_lng}
        return self._query(_IN_BOUNDING_BOX, params)

    def find_by_address_substring(self, text: str) -> List[ShelterRecord]:
        return self._query(_ADDRESS_CONTAINS, {"text": text})

    def find_by_name_substring(self, text: str) -> List[ShelterRecord]:
        return self._query(_NAME_CONTAINS, {"text": text})

    def count(self) -> int:
        with self.get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute("SELECT COUNT(*) FROM shelters")
                    (total,) = cur.fetchone()
            finally:
                conn.rollback()
        return int(total)
