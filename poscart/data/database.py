# poscart/data/database.py
import unicodedata

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from poscart.utils.settings import DATABASE_URL, SQLITE_BUSY_TIMEOUT

# letters with a stroke have no NFD decomposition
_STROKED = str.maketrans({"đ": "d", "Đ": "D"})


def fold_text(value):
    """Lowercase and strip combining marks, so "Café" and "cafe" compare equal."""
    if value is None:
        return None
    decomposed = unicodedata.normalize("NFD", str(value).translate(_STROKED))
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def register_sqlite_functions(engine: Engine) -> Engine:
    """Expose fold_text() to SQL on every new SQLite connection of ``engine``."""
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("fold_text", 1, fold_text, deterministic=True)

    return engine


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    # sqlite: one terminal process, but FastAPI runs sync routes in a threadpool
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT)
        kwargs["connect_args"] = connect_args
    return register_sqlite_functions(create_engine(url, **kwargs))


engine = make_engine()

# expire_on_commit=False: rows returned by the store stay readable after commit
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

Base = declarative_base()


def get_db():
    """Yield a SQLAlchemy session (FastAPI dependency)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None):
    # models have to be imported so they register in Base.metadata
    import poscart.data.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
