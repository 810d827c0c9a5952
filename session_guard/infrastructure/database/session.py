# session_guard/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from session_guard.config.settings import settings

_engine: Engine | None = None

_SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def init_engine(url: str | None = None, **engine_kwargs: Any) -> Engine:
    """(Re)cria o engine e religa a fábrica de sessões. Testes apontam para SQLite aqui."""
    global _engine

    if _engine is not None:
        _engine.dispose()

    engine_kwargs.setdefault("echo", settings.debug)
    engine_kwargs.setdefault("pool_pre_ping", True)

    _engine = create_engine(url or settings.database_url, **engine_kwargs)
    _SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return init_engine()
    return _engine


@contextmanager
def db_session() -> Iterator[Session]:
    get_engine()
    session: Session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
