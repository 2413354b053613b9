import os
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, declarative_base

from .errors import classify_integrity_error

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./batchcalc.db")

if DATABASE_URL.startswith("sqlite"):
    sqlite_args = {"check_same_thread": False, "timeout": 30}
else:
    sqlite_args = {}

engine = create_engine(DATABASE_URL, connect_args=sqlite_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db) -> None:
    """Commit the unit of work, or roll all of it back and surface a classified error."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise classify_integrity_error(exc) from exc
    except Exception:
        db.rollback()
        raise
