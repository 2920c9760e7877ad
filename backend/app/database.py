import os

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from app.config import settings

db_url = str(settings.database_url)
is_postgres = db_url.startswith("postgresql")
is_sqlite = db_url.startswith("sqlite")


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_bool(key: str, default: str = "false") -> bool:
    v = os.getenv(key, default)
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _connect_args() -> dict:
    if is_sqlite:
        # FastAPI runs sync endpoints in a threadpool.
        return {"check_same_thread": False}
    if not is_postgres:
        return {}

    # Ledger transactions hold row locks: a stuck writer must fail fast
    # instead of queueing every transfer behind it.
    options = []
    statement_timeout_ms = _env_int("DB_STATEMENT_TIMEOUT_MS", 5000)
    lock_timeout_ms = _env_int("DB_LOCK_TIMEOUT_MS", 3000)
    if statement_timeout_ms > 0:
        options.append(f"-c statement_timeout={statement_timeout_ms}")
    if lock_timeout_ms > 0:
        options.append(f"-c lock_timeout={lock_timeout_ms}")

    args: dict = {"connect_timeout": _env_int("DB_CONNECT_TIMEOUT_SECONDS", 10)}
    if options:
        args["options"] = " ".join(options)
    return args


def _pool_settings() -> tuple[dict, dict]:
    """Engine pool kwargs plus the summary logged at startup."""

    summary: dict[str, int | str | None] = {
        "pool_size": None,
        "max_overflow": None,
        "pool_timeout": None,
        "pool_recycle": None,
        "use_null_pool": None,
    }
    if not is_postgres:
        return {}, summary

    kwargs: dict = {"pool_pre_ping": True}
    # Transaction poolers (pgbouncer and friends) want no client-side pool.
    if _env_bool("DB_USE_NULL_POOL", "false"):
        kwargs["poolclass"] = NullPool
        summary["use_null_pool"] = "true"
        return kwargs, summary

    pool = {
        "pool_size": _env_int("DB_POOL_SIZE", 5),
        "max_overflow": _env_int("DB_MAX_OVERFLOW", 10),
        "pool_timeout": _env_int("DB_POOL_TIMEOUT_SECONDS", 30),
        "pool_recycle": _env_int("DB_POOL_RECYCLE_SECONDS", 1800),
    }
    kwargs.update(pool)
    summary.update(pool)
    summary["use_null_pool"] = "false"
    return kwargs, summary


_pool_kwargs, POOL_CONFIG = _pool_settings()

engine = create_engine(db_url, future=True, connect_args=_connect_args(), **_pool_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def supports_row_locks(db: Session) -> bool:
    """SQLite has no SELECT ... FOR UPDATE; every other backend we run on does."""

    dialect = getattr(getattr(db, "bind", None), "dialect", None)
    name = str(getattr(dialect, "name", "") or "").lower()
    return bool(name) and name != "sqlite"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # An aborted request leaves no partial ledger state behind.
        if db.in_transaction():
            db.rollback()
        db.close()
