"""Lightweight database helpers for locations and their cached provider data."""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from urllib.parse import unquote, urlparse

from explorer.core.abstractions import RECORD_TYPES, Location
from explorer.core.exceptions import StoreError

try:  # Optional import for MySQL support
    import pymysql
    from pymysql.cursors import DictCursor
except ImportError:  # pragma: no cover - pymysql is optional
    pymysql = None  # type: ignore
    DictCursor = None  # type: ignore


logger = logging.getLogger(__name__)

DOMAIN_TABLES = tuple(record_type.table for record_type in RECORD_TYPES)
DATABASE_ERRORS: tuple = (sqlite3.Error,) + ((pymysql.MySQLError,) if pymysql is not None else ())
INTEGRITY_ERRORS: tuple = (sqlite3.IntegrityError,) + ((pymysql.IntegrityError,) if pymysql is not None else ())


class DatabaseSession:
    """Minimal DB-API session wrapper with context aware placeholders."""

    def __init__(self, connection, placeholder: str, driver: str):
        self.connection = connection
        self.placeholder = placeholder
        self.driver = driver

    def _prepare_sql(self, sql: str) -> str:
        if self.placeholder == "?":
            return sql
        return sql.replace("?", self.placeholder)

    def execute(self, sql: str, params: Sequence[Any] = ()):
        cursor = self.connection.cursor()
        cursor.execute(self._prepare_sql(sql), tuple(params))
        return cursor

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        cursor.close()
        return dict(row) if row is not None else None

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cursor = self.execute(sql, params)
        rows = cursor.fetchall()
        cursor.close()
        return [dict(row) for row in rows]

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        self.connection.close()


class SessionFactory:
    def __init__(self, url: str, placeholder: str, driver: str):
        self.url = url
        self.placeholder = placeholder
        self.driver = driver

    def __call__(self) -> DatabaseSession:
        connection = create_connection(self.url, self.driver)
        return DatabaseSession(connection, self.placeholder, self.driver)


# ---------------------------------------------------------------------------

def default_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./explorer.db")


def configure_engine(url: Optional[str] = None) -> SessionFactory:
    """Build a session factory for ``url`` and make sure the schema exists."""

    url = url or default_database_url()
    driver, placeholder = detect_driver(url)
    factory = SessionFactory(url, placeholder, driver)
    run_migrations(factory)
    return factory


def detect_driver(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    if parsed.scheme.startswith("mysql"):
        if pymysql is None:
            raise RuntimeError("PyMySQL is required for MySQL connections")
        return "mysql", "%s"
    if parsed.scheme.startswith("sqlite") or parsed.scheme == "":
        return "sqlite", "?"
    raise ValueError(f"Unsupported database scheme: {parsed.scheme}")


def create_connection(url: str, driver: str):
    parsed = urlparse(url)
    if driver == "sqlite":
        # sqlite:///relative.db and sqlite:////absolute/path.db
        path = unquote(parsed.path)
        if path.startswith("/"):
            path = path[1:]
        db_path = os.path.abspath(path) if path else ":memory:"
        connection = sqlite3.connect(db_path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys=ON")
        return connection

    if driver == "mysql":
        assert pymysql is not None and DictCursor is not None
        params = {
            "host": parsed.hostname or "localhost",
            "user": parsed.username,
            "password": parsed.password,
            "database": parsed.path.lstrip("/") or None,
            "port": parsed.port or 3306,
            "cursorclass": DictCursor,
            "autocommit": False,
        }
        return pymysql.connect(**params)

    raise ValueError(f"Unsupported driver: {driver}")


@contextmanager
def session_scope(session_factory: SessionFactory):
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------

_DOMAIN_COLUMNS: Dict[str, str] = {
    "weathers": "forecast TEXT, time VARCHAR(32)",
    "yelps": "name VARCHAR(255), image_url TEXT, price VARCHAR(16), rating REAL, url TEXT",
    "movies": (
        "title VARCHAR(255), overview TEXT, average_votes REAL, total_votes INTEGER, "
        "image_url TEXT, popularity REAL, release_on VARCHAR(32)"
    ),
    "meetups": "link TEXT, name VARCHAR(255), creation_date VARCHAR(32), host VARCHAR(255)",
    "trails": (
        "name VARCHAR(255), location VARCHAR(255), length REAL, stars REAL, star_votes INTEGER, "
        "summary TEXT, trail_url TEXT, conditions TEXT, condition_date VARCHAR(32), "
        "condition_time VARCHAR(32)"
    ),
}


def _primary_key(driver: str) -> str:
    if driver == "mysql":
        return "id INTEGER PRIMARY KEY AUTO_INCREMENT"
    return "id INTEGER PRIMARY KEY AUTOINCREMENT"


def run_migrations(session_factory: SessionFactory) -> None:
    session = session_factory()
    try:
        session.execute(
            f"""
            CREATE TABLE IF NOT EXISTS locations (
                {_primary_key(session.driver)},
                search_query VARCHAR(255) NOT NULL UNIQUE,
                formatted_query VARCHAR(255),
                latitude DOUBLE PRECISION NOT NULL,
                longitude DOUBLE PRECISION NOT NULL
            )
            """
        )
        for table in DOMAIN_TABLES:
            session.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    {_primary_key(session.driver)},
                    {_DOMAIN_COLUMNS[table]},
                    created_time VARCHAR(40) NOT NULL,
                    location_id INTEGER NOT NULL,
                    FOREIGN KEY(location_id) REFERENCES locations(id) ON DELETE CASCADE
                )
                """
            )
            if session.driver == "sqlite":
                session.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table}_location ON {table} (location_id)"
                )
        session.commit()
    finally:
        session.close()


# ---------------------------------------------------------------------------

class Store:
    """Relational persistence keyed by location id.

    Each public call runs in its own session; DB-API failures surface as
    :class:`StoreError`.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "Store":
        return cls(configure_engine(url))

    # -- Locations ----------------------------------------------------------
    def find_location(self, search_query: str) -> Optional[Location]:
        with self._scope("find location") as session:
            row = session.fetchone("SELECT * FROM locations WHERE search_query = ?", (search_query,))
        return Location.from_row(row) if row else None

    def insert_location(self, location: Location) -> Location:
        """Persist ``location`` or return the row stored first for its query."""
        row = location.to_row()
        try:
            with session_scope(self.session_factory) as session:
                cursor = session.execute(
                    "INSERT INTO locations (search_query, formatted_query, latitude, longitude) "
                    "VALUES (?, ?, ?, ?)",
                    (row["search_query"], row["formatted_query"], row["latitude"], row["longitude"]),
                )
                location_id = cursor.lastrowid
        except INTEGRITY_ERRORS as exc:
            existing = self.find_location(location.search_query)
            if existing is None:
                logger.error("Store failed to insert location: %s", exc)
                raise StoreError("failed to insert location") from exc
            logger.info("Location %r already stored, reusing id %s", location.search_query, existing.id)
            return existing
        except DATABASE_ERRORS as exc:
            logger.error("Store failed to insert location: %s", exc)
            raise StoreError("failed to insert location") from exc
        return Location(
            search_query=location.search_query,
            formatted_query=location.formatted_query,
            latitude=location.latitude,
            longitude=location.longitude,
            id=location_id,
        )

    # -- Domain tables ------------------------------------------------------
    def query(self, table: str, location_id: int) -> List[Dict[str, Any]]:
        _check_table(table)
        with self._scope(f"query {table}") as session:
            return session.fetchall(
                f"SELECT * FROM {table} WHERE location_id = ? ORDER BY id",
                (location_id,),
            )

    def insert_batch(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[int]:
        _check_table(table)
        with self._scope(f"insert into {table}") as session:
            return _insert_rows(session, table, rows)

    def delete_where(self, table: str, location_id: int) -> int:
        _check_table(table)
        with self._scope(f"delete from {table}") as session:
            cursor = session.execute(f"DELETE FROM {table} WHERE location_id = ?", (location_id,))
            return cursor.rowcount

    def replace_batch(self, table: str, location_id: int, rows: Sequence[Mapping[str, Any]]) -> List[int]:
        """Delete the stored batch and insert ``rows`` in one transaction."""
        _check_table(table)
        with self._scope(f"replace batch in {table}") as session:
            session.execute(f"DELETE FROM {table} WHERE location_id = ?", (location_id,))
            return _insert_rows(session, table, rows)

    # -- helpers ------------------------------------------------------------
    @contextmanager
    def _scope(self, action: str):
        try:
            with session_scope(self.session_factory) as session:
                yield session
        except DATABASE_ERRORS as exc:
            logger.error("Store failed to %s: %s", action, exc)
            raise StoreError(f"failed to {action}") from exc


def _check_table(table: str) -> None:
    if table not in DOMAIN_TABLES:
        raise ValueError(f"Unknown table: {table}")


def _insert_rows(session: DatabaseSession, table: str, rows: Iterable[Mapping[str, Any]]) -> List[int]:
    ids: List[int] = []
    for row in rows:
        columns = list(row.keys())
        placeholders = ", ".join("?" for _ in columns)
        cursor = session.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [row[column] for column in columns],
        )
        ids.append(cursor.lastrowid)
    return ids


__all__ = [
    "DOMAIN_TABLES",
    "DatabaseSession",
    "SessionFactory",
    "Store",
    "configure_engine",
    "create_connection",
    "detect_driver",
    "run_migrations",
    "session_scope",
]
