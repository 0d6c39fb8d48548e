"""
Exceptions raised by the Casbin SQL adapter.

SQLAlchemy errors raised while executing statements are not wrapped; they
reach the caller unchanged unless rolling back the failed transaction
also fails, in which case both are reported through `TransactionError`.
"""

from __future__ import annotations


class AdapterError(RuntimeError):
    """Base class for adapter errors."""


class UnknownDriverError(AdapterError, ValueError):
    def __init__(self, driver_name: str) -> None:
        super().__init__(f"unknown driver: {driver_name!r}")
        self.driver_name = driver_name


class InvalidFilterError(AdapterError, TypeError):
    def __init__(self, value: object) -> None:
        super().__init__(f"invalid filter type: {type(value).__name__}")
        self.value = value


class TransactionError(AdapterError):
    """A unit of work failed and rolling it back failed too."""

    def __init__(self, error: BaseException, rollback_error: BaseException) -> None:
        super().__init__(f"{error}: rolling back transaction: {rollback_error}")
        self.error = error
        self.rollback_error = rollback_error
