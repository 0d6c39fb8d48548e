"""
SQLAlchemy model base class for the Casbin SQL adapter.

The adapter stores every policy rule in one wide table; `CasbinRule`
describes its default shape. All models inherit from the declarative
`Base` defined here.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


from .casbin_rule import CasbinRule, rule_table  # noqa: E402,F401

__all__ = [
    "Base",
    "CasbinRule",
    "rule_table",
]
