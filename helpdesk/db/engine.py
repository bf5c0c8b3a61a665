from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from helpdesk.domain import models  # noqa: F401  (registers the tables)


def build_engine(database_url: str = "sqlite://"):
    if database_url.startswith("sqlite"):
        # One shared connection: an in-memory database lives as long as its connection,
        # and routes run in FastAPI's threadpool
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
