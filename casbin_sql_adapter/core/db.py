"""
Database engine and session management for the Casbin SQL adapter.

Resolves the driver identifier given by callers to a SQLAlchemy dialect,
builds engines with the pool settings from `Settings`, and provides the
`transaction` context manager every adapter operation runs inside.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings, get_settings
from .errors import TransactionError, UnknownDriverError


logger = logging.getLogger("casbin_adapter.db")

DRIVER_DIALECTS: Dict[str, str] = {
    "pg": "postgresql",
    "postgre": "postgresql",
    "postgres": "postgresql",
    "postgresql": "postgresql",
    "mysql": "mysql",
    "mssql": "mssql",
}


def resolve_dialect(driver_name: str) -> str:
    """Map a driver identifier (case-insensitive) to a SQLAlchemy dialect name."""
    dialect = DRIVER_DIALECTS.get((driver_name or "").lower())
    if dialect is None:
        raise UnknownDriverError(driver_name)
    return dialect


def build_url(dialect: str, data_source_name: str) -> URL:
    url = make_url(data_source_name)
    backend, _, dbapi = url.drivername.partition("+")
    if backend == dialect:
        return url
    if DRIVER_DIALECTS.get(backend.lower()) != dialect:
        logger.warning("Data source backend %s does not match driver dialect %s; using %s", backend, dialect, dialect)
    return url.set(drivername=f"{dialect}+{dbapi}" if dbapi else dialect)


def create_db_engine(
    driver_name: str,
    data_source_name: str,
    settings: Optional[Settings] = None,
    **engine_kwargs: Any,
) -> Engine:
    """Create an engine for a driver identifier and data source string."""
    dialect = resolve_dialect(driver_name)
    url = build_url(dialect, data_source_name)
    settings = settings or get_settings()
    options: Dict[str, Any] = {"echo": False}
    # A ready-made pool takes no pool arguments; sizing only applies to QueuePool.
    if "pool" not in engine_kwargs:
        options.update(pool_pre_ping=True, pool_recycle=settings.db_pool_recycle_sec)
    if "poolclass" not in engine_kwargs and "pool" not in engine_kwargs:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_sec,
        )
    options.update(engine_kwargs)
    return create_engine(url, **options)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def transaction(session_factory: sessionmaker) -> Iterator[Session]:
    """Run the enclosed block as one transaction.

    Commits on clean exit; a commit failure propagates as raised. Any
    exception from the block rolls back first and is then re-raised
    unchanged, or reported together with the rollback failure as a
    `TransactionError` when rolling back fails as well. Interrupts and
    other non-`Exception` exits roll back before propagating.
    """
    session = session_factory()
    try:
        session.begin()
        try:
            yield session
        except Exception as exc:
            try:
                session.rollback()
            except Exception as rollback_exc:
                logger.warning("Rollback failed after %s: %s", type(exc).__name__, rollback_exc)
                raise TransactionError(exc, rollback_exc) from exc
            raise
        except BaseException:
            session.rollback()
            raise
        session.commit()
    finally:
        session.close()
