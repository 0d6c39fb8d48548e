"""
Run the bundled Alembic migrations to head.

Usage:
    python -m casbin_sql_adapter.scripts.run_migrations
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from ..core.config import Settings, get_settings
from ..core.db import build_url, resolve_dialect

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def build_alembic_config(settings: Optional[Settings] = None, database_url: Optional[str] = None) -> Config:
    """Alembic config for the bundled migrations, targeting the configured table."""
    settings = settings or get_settings()
    if database_url is None:
        url = build_url(resolve_dialect(settings.driver_name), settings.database_url)
        database_url = url.render_as_string(hide_password=False)
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    cfg.set_main_option("casbin_schema", settings.schema_name or "")
    cfg.set_main_option("casbin_table", settings.table_name)
    return cfg


def run_migrations_to_head(settings: Optional[Settings] = None, database_url: Optional[str] = None) -> None:
    command.upgrade(build_alembic_config(settings, database_url), "head")


def main() -> int:
    try:
        run_migrations_to_head()
    except Exception as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
