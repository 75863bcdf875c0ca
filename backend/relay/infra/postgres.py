import os
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from relay.models.base import Base

logger = logging.getLogger(__name__)

# =========================
# CONFIGURATION
# =========================

def database_password(environ=os.environ) -> str:
    """DB_PASS, falling back to DB_PASSWORD as older .env files spell it"""
    return environ.get("DB_PASS") or environ.get("DB_PASSWORD", "")


# Credentials come from the environment only; nothing is embedded here
DB_USER = os.getenv("DB_USER", "relay")
DB_PASS = database_password()
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "relay")

# A full URL wins over the individual parts (used by tests and managed hosts)
DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# =========================
# ENGINE CONFIGURATION
# =========================

POOL_SIZE = 10

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,     # Check connections before using them
    pool_size=POOL_SIZE,    # Hard bound on concurrent storage handles
    max_overflow=0,
    pool_recycle=3600,      # Recycle connections every hour
    echo=False
)

# =========================
# SESSION CONFIGURATION
# =========================

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# =========================
# DATABASE FUNCTIONS
# =========================

def get_db():
    """
    FastAPI dependency to provide a DB session to routes.
    Usage:
        def my_route(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def db_session():
    """
    Context manager for standalone DB operations (background tasks, scripts).
    Usage:
        with db_session() as db:
            trim_to_tail(db, 1000)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """
    Create the records and participants tables if they are missing.
    Errors propagate so startup can abort.
    """
    # Import models here to register them with Base
    from relay.models.record import Record  # noqa: F401
    from relay.models.participant import Participant  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables initialized")


def check_connection() -> bool:
    """
    Probe the database with SELECT 1.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("❌ Database connection failed")
        return False


def dispose_engine():
    """Close every pooled connection (graceful shutdown)"""
    engine.dispose()
    logger.info("Database connections closed")
