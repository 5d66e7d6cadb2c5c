from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()

_IN_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, future=True, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if database_url in _IN_MEMORY_URLS:
        # One shared connection, otherwise every checkout sees an empty database.
        options["poolclass"] = StaticPool
    engine = create_engine(database_url, future=True, **options)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db_session(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
