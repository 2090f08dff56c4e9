from pathlib import Path
from fastapi import Request
from sqlmodel import SQLModel, create_engine, Session
from ..core.config import settings

SQLITE_PREFIX = "sqlite:///"

def make_engine(url: str):
    if url.startswith(SQLITE_PREFIX):
        # the API serves requests from a threadpool
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(url, echo=False)

engine = make_engine(settings.DATABASE_URL)

def init_db(bind=None) -> None:
    from . import models  # noqa: F401
    bind = bind or engine
    url = str(bind.url)
    if url.startswith(SQLITE_PREFIX):
        path = url[len(SQLITE_PREFIX):]
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind)

def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
