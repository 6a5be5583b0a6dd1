"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from storyreel.config import get_settings

settings = get_settings()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite is used by the desktop build; connection pooling options only
    apply to server databases.

    Args:
        url: Database URL
        echo: Log emitted SQL

    Returns:
        Engine: Configured engine
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=echo,
    )


# Create database engine
engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register with Base
    from storyreel.models import asset, saved_workflow  # noqa: F401

    Base.metadata.create_all(bind=bind)
