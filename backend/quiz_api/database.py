"""Database engine lifecycle and session helpers.

A `Database` owns the SQLModel/SQLAlchemy engine. The application creates
one in `create_app`, builds the tables at startup and disposes the engine
at shutdown. Request handlers receive sessions through `get_session`,
which reads the instance from `app.state` instead of a module global.
"""

from sqlmodel import SQLModel, create_engine, Session
from fastapi import Request

from . import models  # noqa: F401  registers the tables on SQLModel.metadata


class Database:
    def __init__(self, url: str, echo: bool = False):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, echo=echo, connect_args=connect_args)

    def create_tables(self):
        """Create database tables using SQLModel metadata.

        Idempotent; existing tables are left untouched.
        """
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self):
        self.engine.dispose()


def get_session(request: Request):
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
