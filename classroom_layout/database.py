from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from classroom_layout.config import DATABASE_URL


def make_engine(url, **connect_args):
    """Build an engine for ``url``; ``connect_args`` go to the DBAPI connect call.

    SQLite connections get foreign keys switched on so ``ON DELETE CASCADE``
    holds at the storage level too. An in-memory SQLite URL shares a single
    connection, otherwise every session would see an empty database.
    """
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    if connect_args:
        kwargs["connect_args"] = connect_args

    new_engine = create_engine(url, **kwargs)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit = False, autoflush = False, bind = engine)

Base = declarative_base()
