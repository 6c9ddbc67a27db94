from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

settings = get_settings()


def is_memory_database(url: str) -> bool:
    """True for SQLite URLs that point at an in-memory database."""
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def build_engine(url: str):
    """
    Create the SQLAlchemy engine for a database URL.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database must live on a single connection or every checkout
    would see an empty schema. Server databases get a connection pool.
    """
    if make_url(url).get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if is_memory_database(url):
            options["poolclass"] = StaticPool
        return create_engine(url, **options)

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


# Created once by the process entry point; disposed in the app lifespan
engine = build_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency to get database session.
    Yields a database session and closes it after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def database_info() -> dict:
    """Describe the configured store without leaking credentials."""
    return {
        "url": make_url(settings.DATABASE_URL).render_as_string(hide_password=True),
        "dynamic": is_memory_database(settings.DATABASE_URL),
    }
