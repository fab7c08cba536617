from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
import sqlite3
import logging

from app.core.settings import settings
from app.exceptions import ConflictException

logger = logging.getLogger("app.database")

DATABASE_URL = settings.database_url


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FK clauses (and ON DELETE CASCADE) unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.sql_debug,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=settings.db_pool_recycle,
        echo=settings.sql_debug,
    )


engine = _build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

async def check_database_health():
    """Check if database is accessible."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database health check: PASSED")
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Database health check: FAILED - {str(e)}")
        return {"status": "unhealthy", "database": f"error: {str(e)}"}

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def commit_or_conflict(db):
    """Commit, turning constraint rejections (FK, check, unique) into a 409."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Write rejected by constraint: {e.orig}")
        raise ConflictException("Constraint violation")
