from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


@lru_cache(maxsize=4)
def get_engine(dsn: str):
    if dsn.startswith("sqlite") and ":memory:" in dsn:
        # One shared connection, otherwise every session sees an empty database.
        return create_engine(
            dsn,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(dsn, future=True, pool_pre_ping=True)


def session_factory_for(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_schema(engine) -> None:
    from pool_pricing.infrastructure.db.models import pricing  # noqa: F401

    Base.metadata.create_all(engine)
