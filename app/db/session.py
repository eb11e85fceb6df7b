from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import DATABASE_URL

Base = declarative_base()


def make_engine(url: str, **kwargs):
    """Create an engine whose transactions serialize booking writers.

    SQLite takes the database write lock at BEGIN IMMEDIATE, so two
    transactions can never both pass the availability check for the same
    room. Every other backend runs at SERIALIZABLE isolation.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(url, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    kwargs.setdefault("isolation_level", "SERIALIZABLE")
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
