# ruff: noqa: I001

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app import models
from app.api.router import api_router
from app.api.routes.health import healthcheck
from app.config import settings
from app.core.observability import (
    global_exception_handler,
    ledger_error_handler,
    request_logging_middleware,
    validation_exception_handler,
)
from app.core.security import hash_password
from app.database import POOL_CONFIG, SessionLocal, engine
from app.services.errors import LedgerError

api_prefix = (
    settings.api_prefix
    if settings.api_prefix.startswith("/")
    else f"/{settings.api_prefix}"
    if settings.api_prefix
    else ""
)

logger = logging.getLogger("agencia")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    openapi_url=(f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
    if settings.enable_docs
    else None,
)

# Expose logger for middleware without creating circular imports.
app.state.logger = logger

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(LedgerError, ledger_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Request-level logging + request correlation id.
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=api_prefix)


def _run_migrations_if_configured() -> None:
    if not settings.run_migrations_on_start:
        return

    if (settings.environment or "").lower() == "test":
        return

    from alembic import command
    from alembic.config import Config
    from sqlalchemy import text

    backend_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_root / "alembic.ini"))

    try:
        with engine.connect() as connection:
            dialect = str(connection.dialect.name or "").lower()

            # Only one instance migrates at a time.
            lock_acquired = True
            if dialect == "postgresql":
                lock_acquired = bool(
                    connection.execute(
                        text("select pg_try_advisory_lock(:k)"), {"k": 70412203}
                    ).scalar()
                )
            if not lock_acquired:
                logger.info("migrations_skipped_lock_not_acquired")
                return

            try:
                alembic_cfg.attributes["connection"] = connection
                command.upgrade(alembic_cfg, "head")
                logger.info("migrations_applied")
            finally:
                if dialect == "postgresql":
                    connection.execute(text("select pg_advisory_unlock(:k)"), {"k": 70412203})
                    connection.commit()
    except SQLAlchemyError as e:
        # Endpoints that need the DB will fail on their own; keep the API up.
        logger.error("migrations_failed", extra={"error": str(e)})


def _seed_dev_users() -> None:
    env = str(settings.environment or "dev").lower()
    if env in {"prod", "production", "test"}:
        return

    db = SessionLocal()
    try:
        for role_name in models.RoleName:
            role = db.query(models.Role).filter(models.Role.name == role_name).first()
            if not role:
                db.add(models.Role(name=role_name, description=role_name.value))
        db.flush()

        def ensure_user(email: str, name: str, role_name: models.RoleName) -> None:
            if db.query(models.User).filter(models.User.email == email).first():
                return
            role = db.query(models.Role).filter(models.Role.name == role_name).first()
            db.add(
                models.User(
                    email=email,
                    name=name,
                    hashed_password=hash_password("123"),
                    role_id=role.id,
                    active=True,
                )
            )

        ensure_user("admin@agencia.local", "Admin", models.RoleName.admin)
        ensure_user("supervisor@agencia.local", "Supervisor", models.RoleName.supervisor)
        ensure_user("vendedor@agencia.local", "Vendedor", models.RoleName.vendedor)

        db.commit()
    except SQLAlchemyError as e:
        # Tables may not exist yet on a fresh database.
        logger.warning("dev_user_seed_failed", extra={"error": str(e)})
        db.rollback()
    finally:
        db.close()


@app.on_event("startup")
def _startup():
    logger.info(
        "runtime_config",
        extra={
            "pid": os.getpid(),
            "environment": settings.environment,
            "db_pool": POOL_CONFIG,
            "allow_overpayment": settings.allow_overpayment,
        },
    )
    _run_migrations_if_configured()
    _seed_dev_users()


@app.get("/", tags=["meta"])
def root():
    docs_path = (
        (f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
        if settings.enable_docs
        else None
    )
    return {"message": settings.app_name, "docs": docs_path}


app.add_api_route("/health", healthcheck, methods=["GET"], tags=["meta"])
app.add_api_route("/healthz", healthcheck, methods=["GET"], tags=["meta"])
