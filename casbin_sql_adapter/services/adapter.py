"""
Casbin adapter backed by a SQL table.

The adapter loads Casbin's policy from one rule table, saves it back in
bulk, and applies the engine's auto-save mutations (add, remove, update,
and their batch and filtered variants) as they happen. Every write runs
in its own transaction; reads run in a plain session.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from casbin import persist
from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement

from ..core.config import DEFAULT_SCHEMA_NAME, DEFAULT_TABLE_NAME, Settings, get_settings
from ..core.db import create_db_engine, make_session_factory, transaction
from ..core.errors import InvalidFilterError
from ..models.casbin_rule import rule_table
from ..schemas.filter import FieldFilter, Filter
from .rule_mapping import match_values, row_to_line, row_to_values, rule_to_row


logger = logging.getLogger("casbin_adapter")

Option = Callable[["Adapter"], None]


def with_table_name(schema: Optional[str], table: str) -> Option:
    """Store rules in `schema`.`table`; an empty schema leaves the name unqualified."""

    def _apply(adapter: "Adapter") -> None:
        if not table:
            raise ValueError("table name must not be empty")
        adapter.schema_name = schema or None
        adapter.table_name = table

    return _apply


class Adapter(persist.Adapter, persist.adapters.UpdateAdapter):
    """Casbin adapter storing policy rules through SQLAlchemy.

    Wraps an existing engine. The target table is not created or checked;
    see `casbin_sql_adapter.scripts.create_db` for that. Use `Adapter.new`
    to build the engine from a driver name and data source string.
    """

    def __init__(self, engine: Engine, *options: Option) -> None:
        self._engine = engine
        self._owns_engine = False
        self._session_factory = make_session_factory(engine)
        self._filtered = False
        self.schema_name: Optional[str] = DEFAULT_SCHEMA_NAME
        self.table_name: str = DEFAULT_TABLE_NAME
        for option in options:
            option(self)
        self._table = rule_table(self.schema_name, self.table_name)

    @classmethod
    def new(cls, driver_name: str, data_source_name: str, *options: Option, **engine_kwargs: Any) -> "Adapter":
        """Create an adapter that owns a new engine for the given driver and data source."""
        engine = create_db_engine(driver_name, data_source_name, **engine_kwargs)
        adapter = cls(engine, *options)
        adapter._owns_engine = True
        return adapter

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Adapter":
        settings = settings or get_settings()
        engine = create_db_engine(settings.driver_name, settings.database_url, settings=settings)
        adapter = cls(engine, with_table_name(settings.schema_name, settings.table_name))
        adapter._owns_engine = True
        return adapter

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def table(self) -> Table:
        return self._table

    @property
    def full_table_name(self) -> str:
        if not self.schema_name:
            return self.table_name
        return f"{self.schema_name}.{self.table_name}"

    def close(self) -> None:
        """Dispose the engine if this adapter created it."""
        if self._owns_engine:
            self._engine.dispose()

    # -- loading -----------------------------------------------------------

    def load_policy(self, model) -> None:
        """Load every stored rule into the model, in insertion order."""
        stmt = select(self._table).order_by(self._table.c.id.asc())
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        self._load_rows(rows, model)

    def load_filtered_policy(self, model, filter) -> None:
        """Load only the rules matching `filter`, which must be a `Filter`."""
        if not isinstance(filter, Filter):
            raise InvalidFilterError(filter)
        stmt = select(self._table)
        for column, values in filter.columns().items():
            stmt = stmt.where(self._table.c[column].in_(values))
        stmt = stmt.order_by(self._table.c.id.asc())
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        self._load_rows(rows, model)
        self._filtered = True

    def is_filtered(self) -> bool:
        return self._filtered

    def _load_rows(self, rows, model) -> None:
        loaded = 0
        for row in rows:
            line = row_to_line(row)
            if line is None:
                continue
            persist.load_policy_line(line, model)
            loaded += 1
        logger.debug("Loaded %s of %s rules from %s", loaded, len(rows), self.full_table_name)

    # -- saving ------------------------------------------------------------

    def save_policy(self, model) -> None:
        """Replace the stored rules with every `p` and `g` rule of the model."""
        rows = []
        for sec in ("p", "g"):
            for ptype, assertion in model.model.get(sec, {}).items():
                for rule in assertion.policy:
                    rows.append(rule_to_row(ptype, rule))
        with transaction(self._session_factory) as session:
            # DELETE rather than TRUNCATE: MySQL commits implicitly on TRUNCATE.
            session.execute(delete(self._table))
            if rows:
                session.execute(insert(self._table), rows)
        logger.info("Saved %s rules to %s", len(rows), self.full_table_name)

    # -- auto-save ---------------------------------------------------------

    def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> None:
        with transaction(self._session_factory) as session:
            self._insert_rules(session, ptype, [rule])

    def add_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> None:
        with transaction(self._session_factory) as session:
            self._insert_rules(session, ptype, rules)

    def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> None:
        with transaction(self._session_factory) as session:
            self._delete_rule(session, ptype, rule)

    def remove_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> None:
        with transaction(self._session_factory) as session:
            for rule in rules:
                self._delete_rule(session, ptype, rule)

    def remove_filtered_policy(self, sec: str, ptype: str, field_index: int, *field_values: str) -> None:
        """Remove rules of `ptype` whose fields from `field_index` on equal `field_values`."""
        field_filter = FieldFilter(ptype, field_index, tuple(field_values))
        with transaction(self._session_factory) as session:
            result = session.execute(delete(self._table).where(*self._field_filter_clauses(field_filter)))
        logger.debug("Removed %s filtered rules of %s", result.rowcount, ptype)

    def update_policy(self, sec: str, ptype: str, old_rule: Sequence[str], new_rule: Sequence[str]) -> None:
        """Rewrite v0..v5 of rows exactly matching `old_rule`; ptype is kept.

        v6 and v7 are not rewritten, so 7- and 8-value rules keep their old
        trailing values. `update_policies` reinserts and writes them.
        """
        new_values = match_values(ptype, new_rule)
        new_values.pop("ptype")
        stmt = update(self._table).where(*self._match_clauses(ptype, old_rule)).values(**new_values)
        with transaction(self._session_factory) as session:
            session.execute(stmt)

    def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> None:
        """Delete every match of `old_rules`, then insert `new_rules`.

        Rules are not paired by position and the lengths are not compared.
        """
        with transaction(self._session_factory) as session:
            for rule in old_rules:
                self._delete_rule(session, ptype, rule)
            self._insert_rules(session, ptype, new_rules)

    def update_filtered_policies(
        self,
        sec: str,
        ptype: str,
        new_rules: Sequence[Sequence[str]],
        field_index: int,
        *field_values: str,
    ) -> List[List[str]]:
        """Replace the rules matched by the field filter with `new_rules`.

        Returns the non-empty v0..v5 values of every replaced row.
        """
        field_filter = FieldFilter(ptype, field_index, tuple(field_values))
        stmt = (
            select(self._table)
            .where(*self._field_filter_clauses(field_filter))
            .order_by(self._table.c.id.asc())
        )
        with transaction(self._session_factory) as session:
            rows = session.execute(stmt).all()
            for row in rows:
                session.execute(delete(self._table).where(self._table.c.id == row.id))
            self._insert_rules(session, ptype, new_rules)
        logger.debug("Replaced %s filtered rules of %s with %s", len(rows), ptype, len(new_rules))
        return [row_to_values(row) for row in rows]

    # -- statement helpers -------------------------------------------------

    def _match_clauses(self, ptype: str, rule: Sequence[str]) -> List[ColumnElement]:
        return [self._table.c[name] == value for name, value in match_values(ptype, rule).items()]

    def _field_filter_clauses(self, field_filter: FieldFilter) -> List[ColumnElement]:
        clauses = [self._table.c.ptype == field_filter.ptype]
        for column, value in field_filter.bindings():
            clauses.append(self._table.c[column] == value)
        return clauses

    def _insert_rules(self, session: Session, ptype: str, rules: Sequence[Sequence[str]]) -> None:
        rows = [rule_to_row(ptype, rule) for rule in rules]
        if rows:
            session.execute(insert(self._table), rows)

    def _delete_rule(self, session: Session, ptype: str, rule: Sequence[str]) -> None:
        session.execute(delete(self._table).where(*self._match_clauses(ptype, rule)))
