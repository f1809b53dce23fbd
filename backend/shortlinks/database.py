import json
from functools import partial

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL
is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")

# Create engine with SQLite optimizations
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={
        "check_same_thread": False,
        "timeout": 30
    } if is_sqlite else {},
    # Store tags as readable UTF-8 so they can be searched
    json_serializer=partial(json.dumps, ensure_ascii=False),
    pool_pre_ping=True
)


def unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


# Enable WAL mode and foreign keys for SQLite
if is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()
        # Built-in lower() only folds ASCII
        dbapi_conn.create_function("lower", 1, unicode_lower)


# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
