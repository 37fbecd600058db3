"""Database session configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from dob_auth.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import dob_auth.models  # noqa: E402,F401


def build_engine(url: str, *, timeout_seconds: float, echo: bool = False) -> Engine:
    """Create an engine whose connection waits are bounded by ``timeout_seconds``."""
    kwargs: dict[str, Any] = {"pool_pre_ping": True, "echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": timeout_seconds}
        if url in {"sqlite://", "sqlite:///:memory:"}:
            # A private in-memory database only survives on a single shared connection.
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_timeout"] = timeout_seconds
        if url.startswith("postgresql"):
            kwargs["connect_args"] = {"connect_timeout": max(1, int(timeout_seconds))}
    return create_engine(url, **kwargs)


engine = build_engine(
    settings.database_url,
    timeout_seconds=settings.store_timeout_seconds,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
