# sopopped/database.py
from sqlmodel import SQLModel, create_engine, Session

from sopopped.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Storefront database connection
#
# - pool_pre_ping=True: validate connections before using them
# - pool_recycle=1800 : MySQL drops idle connections (wait_timeout),
#                       so refresh them every 30 minutes
#
# SQLite (local dev / tests) uses its own single-connection pool and
# needs check_same_thread disabled for the threaded test client.
# ---------------------------------------------------------

db_url = settings.DATABASE_URL

if db_url.startswith("sqlite"):
    engine = create_engine(
        db_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=5,
        max_overflow=5,
    )


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
