from marketplace.database.base import Base
from marketplace.database.engine import configure_sqlite_engine, engine
from marketplace.database.session import SessionLocal

__all__ = ["Base", "SessionLocal", "configure_sqlite_engine", "engine"]
