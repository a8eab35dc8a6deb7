from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        # In-memory SQLite lives per connection; share one across threads.
        poolclass = StaticPool if ":memory:" in database_url or database_url == "sqlite://" else None
        return create_engine(database_url, future=True, connect_args=connect_args, poolclass=poolclass)
    return create_engine(database_url, pool_pre_ping=True, future=True)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


def init_db(engine: Engine) -> None:
    from harmoniq.database import models  # noqa: F401 - imported for metadata side effects

    Base.metadata.create_all(bind=engine)
