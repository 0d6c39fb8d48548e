"""Create the Casbin rule table."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import MetaData, inspect
from sqlalchemy.engine import Engine

from ..core.config import get_settings
from ..core.db import create_db_engine
from ..models.casbin_rule import rule_table


logger = logging.getLogger("scripts.create_db")


def create_rule_table(engine: Engine, schema: Optional[str], table: str) -> bool:
    """Create `schema`.`table` if it does not exist. Returns True when created."""
    schema = schema or None
    if inspect(engine).has_table(table, schema=schema):
        return False
    metadata = MetaData()
    rule_table(schema, table, metadata)
    metadata.create_all(bind=engine)
    logger.info("Created rule table %s", f"{schema}.{table}" if schema else table)
    return True


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    engine = create_db_engine(settings.driver_name, settings.database_url, settings=settings)
    try:
        create_rule_table(engine, settings.schema_name, settings.table_name)
    finally:
        engine.dispose()
    logger.info("Rule table created/verified.")


if __name__ == "__main__":
    main()
