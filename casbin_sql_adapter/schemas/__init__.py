from .filter import FieldFilter, Filter  # noqa: F401

__all__ = ["Filter", "FieldFilter"]
