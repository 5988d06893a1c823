from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """SQLAlchemy prefers postgresql:// over postgres://."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(db_url: str):
    """Create an engine for the given URL, with pool settings suited to its backend."""
    db_url = normalize_database_url(db_url)

    if db_url.startswith("sqlite"):
        # SQLite is used for local runs and tests; in-memory databases need a single shared connection
        connect_args = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(db_url, echo=False, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(db_url, echo=False, connect_args=connect_args)

    return create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


db_url = normalize_database_url(settings.database_url)
logger.info(f"Connecting to database: {db_url[:20]}...")  # Log partial URL for debugging

engine = build_engine(db_url)


def get_session():
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session


def init_db():
    """Initialize database tables."""
    SQLModel.metadata.create_all(engine)
