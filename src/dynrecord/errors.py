"""
dynrecord.errors  ──  exception hierarchy

Every error derives from :class:`DynamicRecordError` *and* from the builtin a
caller would expect at the same place, so ``except KeyError`` around a
mapping lookup or ``hasattr(record, "x")`` keep working.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence


class DynamicRecordError(Exception):
    """Base class for all dynrecord errors."""


class TypeMismatch(DynamicRecordError, TypeError):
    """A value does not satisfy the type of the slot it is written to."""

    def __init__(
        self,
        field: str,
        expected: Any,
        value: Any,
        errors: Sequence[Dict[str, Any]] = (),
    ):
        self.field = field
        self.expected = expected
        self.value = value
        self.errors: List[Dict[str, Any]] = list(errors)
        super().__init__(field, expected, value)

    def __str__(self) -> str:
        return (
            f"field {self.field!r} expects {self.expected}, "
            f"got {type(self.value).__name__}: {self.value!r}"
        )


class KeyNotFound(DynamicRecordError, KeyError, AttributeError):
    """No dynamic entry with that name (and no default was given)."""

    def __init__(self, key: Any, owner: Any = None):
        self.key = key
        self.owner = owner
        super().__init__(key)

    def __str__(self) -> str:
        owner = getattr(self.owner, "__name__", None) or "record"
        return f"{owner} has no field {self.key!r}"


class ArityError(DynamicRecordError, TypeError):
    """Fewer positional values than declared fixed fields."""


class DefinitionError(DynamicRecordError, TypeError):
    """Malformed or parametrized record type declaration."""


class FieldConflict(DefinitionError):
    """A dynamic-layer write or removal names a fixed field."""
