from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from exam_digitizer.core.config import get_settings
from exam_digitizer.infra.db.base import Base

DEFAULT_DB_PATH = Path(__file__).resolve().parents[3] / "exam_digitizer.db"


def resolve_database_url(raw_url: str | None) -> str:
    """Default to a SQLite file beside the backend; relative SQLite paths become absolute."""
    if not raw_url:
        return f"sqlite:///{DEFAULT_DB_PATH}"

    prefix = "sqlite:///"
    if raw_url.startswith(prefix):
        path_part = raw_url[len(prefix):]
        if path_part and path_part != ":memory:" and not path_part.startswith("/"):
            return f"{prefix}{Path(path_part).resolve()}"
    return raw_url


def build_engine(database_url: str) -> Engine:
    kwargs: dict = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(database_url, **kwargs)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return build_engine(resolve_database_url(get_settings().database_url))


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    from exam_digitizer.infra.db import models as _models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())
