from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings


def _connect_args(url: str) -> dict:
    # FastAPI hands sessions to worker threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def make_engine(url: str = None, echo: bool = None):
    url = url or settings.database_url
    return create_engine(
        url,
        echo=settings.database_echo if echo is None else echo,
        future=True,
        connect_args=_connect_args(url),
    )


def make_session_factory(bind) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)

Base = declarative_base()


@contextmanager
def session_scope(factory: sessionmaker = None) -> Generator[Session, None, None]:
    """Yield a session that is always closed; the caller decides on commit."""
    session = (factory or SessionLocal)()
    try:
        yield session
    finally:
        session.close()


def init_db(bind=None):
    # Import models so they register on Base.metadata
    from .models import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
