"""Lightweight database helpers for persisting normalized disaster events."""
from __future__ import annotations

import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import unquote, urlparse

from safetynet.entities import Coordinates, DisasterCategory, DisasterEvent, Severity
from safetynet.geo import filter_by_radius

try:  # Optional import for MySQL support
    import pymysql
    from pymysql.cursors import DictCursor
except ImportError:  # pragma: no cover - pymysql is optional
    pymysql = None  # type: ignore
    DictCursor = None  # type: ignore


class DatabaseSession:
    """Minimal DB-API session wrapper with context aware placeholders."""

    def __init__(self, connection, placeholder: str):
        self.connection = connection
        self.placeholder = placeholder

    def _prepare_sql(self, sql: str) -> str:
        if self.placeholder == "?":
            return sql
        return sql.replace("?", self.placeholder)

    def execute(self, sql: str, params: tuple = ()):
        cursor = self.connection.cursor()
        cursor.execute(self._prepare_sql(sql), params)
        return cursor

    def fetchone(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        cursor.close()
        return row

    def fetchall(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        rows = cursor.fetchall()
        cursor.close()
        return rows

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
        return DatabaseSession(connection, self.placeholder)


_engine_lock = threading.Lock()
_session_factory: Optional[SessionFactory] = None


def _default_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./safetynet.db")


def configure_engine(url: Optional[str] = None) -> SessionFactory:
    """Point the module at ``url`` (``DATABASE_URL`` by default) and create the schema."""
    global _session_factory
    with _engine_lock:
        database_url = url or _default_database_url()
        driver, placeholder = detect_driver(database_url)
        _session_factory = SessionFactory(database_url, placeholder, driver)
    run_migrations(_session_factory)
    return _session_factory


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
        path = unquote(parsed.path or parsed.netloc or ":memory:")
        db_path = path if path.startswith("/") or path == ":memory:" else os.path.abspath(path)
        connection = sqlite3.connect(db_path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        return connection

    if driver == "mysql":
        return pymysql.connect(
            host=parsed.hostname or "localhost",
            user=parsed.username,
            password=parsed.password,
            database=parsed.path.lstrip("/") or None,
            port=parsed.port or 3306,
            cursorclass=DictCursor,
            autocommit=False,
        )

    raise ValueError(f"Unsupported driver: {driver}")


def get_session_factory() -> SessionFactory:
    if _session_factory is None:
        return configure_engine()
    return _session_factory


@contextmanager
def session_scope(session_factory: Optional[SessionFactory] = None):
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_migrations(session_factory: Optional[SessionFactory] = None) -> None:
    factory = session_factory or get_session_factory()
    autoincrement = "AUTO_INCREMENT" if factory.driver == "mysql" else "AUTOINCREMENT"
    with session_scope(factory) as session:
        session.execute(
            f"""
            CREATE TABLE IF NOT EXISTS disaster_events (
                id INTEGER PRIMARY KEY {autoincrement},
                event_id VARCHAR(191) NOT NULL UNIQUE,
                category VARCHAR(32) NOT NULL,
                severity VARCHAR(16) NOT NULL,
                title VARCHAR(255) NOT NULL,
                description TEXT,
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                radius_km REAL NOT NULL,
                start_time VARCHAR(40),
                end_time VARCHAR(40),
                source VARCHAR(128) NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at VARCHAR(40) NOT NULL
            )
            """
        )


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _event_from_row(row) -> DisasterEvent:
    return DisasterEvent(
        event_id=row["event_id"],
        category=DisasterCategory(row["category"]),
        severity=Severity(row["severity"]),
        title=row["title"],
        description=row["description"] or "",
        latitude=row["latitude"],
        longitude=row["longitude"],
        radius_km=row["radius_km"],
        source=row["source"],
        start_time=_parse_time(row["start_time"]),
        end_time=_parse_time(row["end_time"]),
        is_active=bool(row["is_active"]),
    )


class DisasterEventRepository:
    """Persistence collaborator for :class:`safetynet.services.disasters.DisasterService`."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    @property
    def session_factory(self) -> SessionFactory:
        return self._session_factory or get_session_factory()

    def find_by_id(self, event_id: str) -> Optional[DisasterEvent]:
        with session_scope(self.session_factory) as session:
            row = session.fetchone("SELECT * FROM disaster_events WHERE event_id = ?", (event_id,))
        return _event_from_row(row) if row is not None else None

    def create(self, event: DisasterEvent) -> DisasterEvent:
        with session_scope(self.session_factory) as session:
            session.execute(
                """
                INSERT INTO disaster_events (
                    event_id, category, severity, title, description, latitude, longitude,
                    radius_km, start_time, end_time, source, is_active, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.event_id,
                    event.category.value,
                    event.severity.value,
                    event.title,
                    event.description,
                    event.latitude,
                    event.longitude,
                    event.radius_km,
                    _format_time(event.start_time),
                    _format_time(event.end_time),
                    event.source,
                    1 if event.is_active else 0,
                    utcnow_iso(),
                ),
            )
        return event

    def find_active(self) -> List[DisasterEvent]:
        with session_scope(self.session_factory) as session:
            rows = session.fetchall("SELECT * FROM disaster_events WHERE is_active = 1 ORDER BY id")
        return [_event_from_row(row) for row in rows]

    def find_near(self, latitude: float, longitude: float, radius_km: float) -> List[DisasterEvent]:
        return filter_by_radius(self.find_active(), Coordinates(latitude, longitude), radius_km)

    def count(self) -> int:
        with session_scope(self.session_factory) as session:
            row = session.fetchone("SELECT COUNT(*) AS cnt FROM disaster_events")
        if isinstance(row, dict):
            return int(row["cnt"])
        return int(row[0])


__all__ = [
    "DatabaseSession",
    "DisasterEventRepository",
    "SessionFactory",
    "configure_engine",
    "get_session_factory",
    "run_migrations",
    "session_scope",
]
