"""
Storage model for Casbin policy rules.

One row holds one rule: the policy type (`ptype`, e.g. ``p`` or ``g``)
and up to eight positional values. Unused trailing values are stored as
empty strings, never NULL, so a rule's arity is implied by its last
non-empty value.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, MetaData, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


class CasbinRule(Base):
    __tablename__ = "casbin_rule"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ptype: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v0: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v1: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v2: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v3: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v4: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v5: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    # v6/v7 are stored but never used to match rules.
    v6: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    v7: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")

    def __repr__(self) -> str:
        values = ", ".join(v for v in (self.v0, self.v1, self.v2, self.v3, self.v4, self.v5) if v)
        return f"<CasbinRule(id={self.id}, ptype={self.ptype}, {values})>"


def rule_table(schema: Optional[str], name: str, metadata: Optional[MetaData] = None) -> Table:
    """Copy of the `CasbinRule` table bound to another schema and/or name."""
    return CasbinRule.__table__.to_metadata(metadata or MetaData(), schema=schema or None, name=name)
