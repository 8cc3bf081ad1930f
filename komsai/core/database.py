from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings


def _database_url(raw_url: str) -> str:
    """Heroku/Render style postgres:// URLs are pointed at the psycopg driver (the `postgres` extra)."""
    url = (raw_url or "").strip() or "sqlite:///./komsai.db"
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url.removeprefix("postgres://")
    return url


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # Requests and push deliveries touch SQLite from worker threads
    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


DATABASE_URL = _database_url(settings.database_url)
engine = _make_engine(DATABASE_URL)


def get_db():
    with Session(engine) as session:
        yield session


def init_db():
    """Create missing tables; schema changes go through alembic (migrations/)."""
    SQLModel.metadata.create_all(engine)
