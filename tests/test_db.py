import logging

import pytest
from sqlalchemy.pool import NullPool

from casbin_sql_adapter.core import db
from casbin_sql_adapter.core.config import Settings
from casbin_sql_adapter.core.errors import TransactionError, UnknownDriverError


class _FakeSession:
    def __init__(self, fail_rollback=False, fail_commit=False):
        self.fail_rollback = fail_rollback
        self.fail_commit = fail_commit
        self.calls = []

    def begin(self):
        self.calls.append("begin")

    def commit(self):
        self.calls.append("commit")
        if self.fail_commit:
            raise RuntimeError("commit failed")

    def rollback(self):
        self.calls.append("rollback")
        if self.fail_rollback:
            raise RuntimeError("rollback failed")

    def close(self):
        self.calls.append("close")


@pytest.mark.parametrize("name", ["pg", "postgre", "Postgres", "POSTGRESQL"])
def test_resolve_dialect_postgres_aliases(name):
    assert db.resolve_dialect(name) == "postgresql"


def test_resolve_dialect_mysql_and_mssql():
    assert db.resolve_dialect("MySQL") == "mysql"
    assert db.resolve_dialect("mssql") == "mssql"


@pytest.mark.parametrize("name", ["sqlite3", "oracle", ""])
def test_resolve_dialect_unknown(name):
    with pytest.raises(UnknownDriverError):
        db.resolve_dialect(name)


def test_build_url_normalizes_postgres_scheme():
    url = db.build_url("postgresql", "postgres://user:pw@localhost:5432/app")
    assert url.drivername == "postgresql"
    assert url.database == "app"


def test_build_url_keeps_dbapi_suffix():
    url = db.build_url("postgresql", "postgresql+psycopg2://user:pw@localhost/app")
    assert url.drivername == "postgresql+psycopg2"


def test_build_url_warns_on_backend_mismatch(caplog):
    caplog.set_level(logging.WARNING)
    url = db.build_url("mysql", "postgresql+pymysql://user:pw@localhost/app")
    assert url.drivername == "mysql+pymysql"
    assert any("does not match" in rec.message for rec in caplog.records)


def test_create_db_engine_unknown_driver_does_not_create_engine(monkeypatch):
    created = []
    monkeypatch.setattr(db, "create_engine", lambda *a, **kw: created.append((a, kw)))
    with pytest.raises(UnknownDriverError):
        db.create_db_engine("sqlite", "sqlite://")
    assert created == []


def test_create_db_engine_passes_pool_settings(monkeypatch):
    captured = {}

    def _fake_create_engine(url, **kwargs):
        captured["url"] = url
        captured["kwargs"] = kwargs
        return "engine"

    monkeypatch.setattr(db, "create_engine", _fake_create_engine)
    settings = Settings(db_pool_size=3, db_max_overflow=1)
    engine = db.create_db_engine("pg", "postgres://u:p@localhost/app", settings=settings, echo=True)
    assert engine == "engine"
    assert captured["url"].drivername == "postgresql"
    assert captured["kwargs"]["pool_size"] == 3
    assert captured["kwargs"]["max_overflow"] == 1
    assert captured["kwargs"]["echo"] is True


def test_create_db_engine_leaves_pool_sizing_to_custom_poolclass(monkeypatch):
    captured = {}
    monkeypatch.setattr(db, "create_engine", lambda url, **kwargs: captured.update(kwargs))
    db.create_db_engine("pg", "postgresql+psycopg2://u:p@localhost/app", settings=Settings(), poolclass=NullPool)
    assert captured["poolclass"] is NullPool
    assert captured["pool_pre_ping"] is True
    for name in ("pool_size", "max_overflow", "pool_timeout"):
        assert name not in captured


def test_create_db_engine_passes_ready_made_pool_alone(monkeypatch):
    captured = {}
    pool = object()
    monkeypatch.setattr(db, "create_engine", lambda url, **kwargs: captured.update(kwargs))
    db.create_db_engine("mysql", "mysql+pymysql://u:p@localhost/app", settings=Settings(), pool=pool)
    assert captured == {"echo": False, "pool": pool}


def test_transaction_commits_on_success():
    session = _FakeSession()
    with db.transaction(lambda: session) as tx:
        assert tx is session
    assert session.calls == ["begin", "commit", "close"]


def test_transaction_rolls_back_and_reraises_unchanged():
    session = _FakeSession()
    error = ValueError("boom")
    with pytest.raises(ValueError) as info:
        with db.transaction(lambda: session):
            raise error
    assert info.value is error
    assert session.calls == ["begin", "rollback", "close"]


def test_transaction_reports_rollback_failure():
    session = _FakeSession(fail_rollback=True)
    with pytest.raises(TransactionError) as info:
        with db.transaction(lambda: session):
            raise ValueError("boom")
    assert isinstance(info.value.error, ValueError)
    assert str(info.value.rollback_error) == "rollback failed"
    assert info.value.__cause__ is info.value.error
    assert "close" in session.calls


def test_transaction_commit_failure_is_not_wrapped():
    session = _FakeSession(fail_commit=True)
    with pytest.raises(RuntimeError, match="commit failed") as info:
        with db.transaction(lambda: session):
            pass
    assert not isinstance(info.value, TransactionError)
    assert session.calls[-1] == "close"


def test_transaction_rolls_back_on_interrupt():
    session = _FakeSession()
    with pytest.raises(KeyboardInterrupt):
        with db.transaction(lambda: session):
            raise KeyboardInterrupt()
    assert session.calls == ["begin", "rollback", "close"]
