from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session

from config import DATABASE_URL, SQL_ECHO


def make_engine(url: str, **kwargs):
    """Create an engine; SQLite connections get foreign keys switched on."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, echo=SQL_ECHO, **kwargs)
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = make_engine(DATABASE_URL)


def init_db(bind=None) -> None:
    import models  # noqa: F401  registers the tables on SQLModel.metadata

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
