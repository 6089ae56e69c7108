"""Engine and session factory construction."""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


def create_session_factory(database_url: str, create_tables: bool = True) -> sessionmaker:
    """
    Build a session factory bound to a fresh engine.

    In-memory SQLite URLs share a single connection so every session sees the
    same database.
    """
    kwargs = {"future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    if create_tables:
        Base.metadata.create_all(engine)

    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        class_=Session,
    )

