# app/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()


def build_engine(db_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Postgres (Supabase pooler):
      - sslmode=require   : enforce SSL when running in the cloud
      - pool_size=1       : keep only 1 connection to the Supabase pooler
      - max_overflow=0    : do not open extra connections beyond the pool
      - pool_pre_ping=True: validate connections before using them

    Supabase Session mode limits the number of clients, so each process
    keeps a single pooled connection.

    SQLite (local runs / tests): no pool sizing, connection shared across
    threads.
    """
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    # Startup only; schema changes beyond new tables need a migration
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    One Session per request. Services commit explicitly; anything left
    uncommitted when the request ends is rolled back on close.
    """
    with Session(engine) as session:
        yield session
