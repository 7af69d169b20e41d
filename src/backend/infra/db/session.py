from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

SessionFactory = Callable[[], Session]


def create_sqlalchemy_engine(database_url: str) -> Engine:
    return create_engine(database_url, future=True)


def create_sqlalchemy_session_factory(engine: Engine) -> SessionFactory:
    """Create a factory producing SQLAlchemy sessions bound to ``engine``.

    Sessions keep loaded attributes after commit so repositories can convert
    ORM rows to domain models after the transaction ends.
    """

    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)

    def _factory() -> Session:
        return SessionLocal()

    return _factory
