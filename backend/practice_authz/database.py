from datetime import datetime, timezone
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from practice_authz.config import settings

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _engine_options(url: str) -> dict:
    # SQLite pools don't take sizing arguments
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    settings.database_url,
    echo=False,
    **_engine_options(settings.database_url),
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", (database_url or settings.database_url).replace("%", "%%"))
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(database_url: str | None = None) -> None:
    """
    Upgrade the database to the latest revision.

    Blocking, and the async env starts its own event loop: call it from a
    worker thread (``asyncio.to_thread``) when a loop is already running.
    """
    command.upgrade(alembic_config(database_url), "head")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
