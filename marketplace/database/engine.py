import logging
import re
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from marketplace.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000

_db_url = make_url(app_settings.DATABASE_URL)
is_sqlite = _db_url.get_backend_name() == "sqlite"
is_sqlite_memory = False
if is_sqlite:
    sqlite_db = _db_url.database
    is_sqlite_memory = sqlite_db in (None, "", ":memory:")
    if not is_sqlite_memory and _db_url.query.get("mode") == "memory":
        is_sqlite_memory = True

connect_args = {}
engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
if is_sqlite:
    connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
    if is_sqlite_memory:
        engine_kwargs.update(poolclass=StaticPool)


def _sqlite_regexp_replace(value, pattern, replacement, flags):
    if value is None:
        return None
    flags = flags or ""
    count = 0 if "g" in flags else 1
    re_flags = re.IGNORECASE if "i" in flags else 0
    return re.sub(pattern, replacement, str(value), count=count, flags=re_flags)


def configure_sqlite_engine(target_engine: Engine, *, in_memory: bool = False) -> Engine:
    """Attach the pragmas and SQL functions the catalog queries rely on.

    SQLite has no ``regexp_replace``; the PostgreSQL signature
    ``regexp_replace(source, pattern, replacement, flags)`` is provided from
    Python so the minimum-order extraction compiles the same on both backends.
    """

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        dbapi_connection.create_function(
            "regexp_replace", 4, _sqlite_regexp_replace, deterministic=True
        )
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
            if not in_memory:
                try:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                except sqlite3.DatabaseError:
                    logger.warning("Unable to enable WAL journal mode for SQLite.")
        finally:
            cursor.close()

    return target_engine


engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args=connect_args,
    **engine_kwargs,
)

if is_sqlite:
    configure_sqlite_engine(engine, in_memory=is_sqlite_memory)


__all__ = ["configure_sqlite_engine", "engine", "is_sqlite"]
