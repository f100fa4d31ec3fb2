"""
Runtime type checks for record slots, backed by pydantic's TypeAdapter.

* ``Any`` / ``object`` skip validation entirely.
* Strict mode by default: no ``"3" -> 3`` coercion, subclass instances pass.
* A value that is an instance of a plain class annotation is stored
  unchanged (``True`` under ``int``, enum members, ``str`` subclasses).
  Everything else goes through the adapter.
"""

from __future__ import annotations

from typing import Any, ParamSpec, TypeVar, TypeVarTuple, get_args, get_origin

from pydantic import ConfigDict, TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError, PydanticUserError

from ..errors import DefinitionError, TypeMismatch

_ADAPTER_CONFIG = ConfigDict(arbitrary_types_allowed=True)
_UNCHECKED = (Any, object)


# helpers
def type_repr(annotation: Any) -> str:
    """Short display form: ``int``, ``list[int]``, ``Optional[str]``."""
    if annotation is Any:
        return "Any"
    if isinstance(annotation, type) and not get_args(annotation):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")


def is_annotation(obj: Any) -> bool:
    """True for things that read as a type rather than as a tag value."""
    return (
        isinstance(obj, (type, TypeVar, ParamSpec, TypeVarTuple))
        or obj is Any
        or get_origin(obj) is not None
    )


def has_type_params(annotation: Any) -> bool:
    if isinstance(annotation, (TypeVar, ParamSpec, TypeVarTuple)):
        return True
    return any(has_type_params(arg) for arg in get_args(annotation))


def _build_adapter(annotation: Any) -> TypeAdapter:
    try:
        return TypeAdapter(annotation, config=_ADAPTER_CONFIG)
    except PydanticSchemaGenerationError as exc:
        raise DefinitionError(
            f"cannot check values against {annotation!r}: {exc}"
        ) from exc
    except PydanticUserError as exc:
        # models, dataclasses and TypedDicts carry their own config
        if exc.code != "type-adapter-config-unused":
            raise DefinitionError(
                f"cannot check values against {annotation!r}: {exc}"
            ) from exc
        return TypeAdapter(annotation)


class ValueType:
    """One type constraint, applied to every write of the slot(s) it guards."""

    __slots__ = ("annotation", "strict", "_adapter", "_plain_class")

    def __init__(self, annotation: Any = Any, *, strict: bool = True):
        if has_type_params(annotation):
            raise DefinitionError(
                f"parametrized value type {type_repr(annotation)} is not supported"
            )
        self.annotation = annotation
        self.strict = strict
        self._plain_class = isinstance(annotation, type) and get_origin(annotation) is None
        self._adapter = (
            None if annotation in _UNCHECKED else _build_adapter(annotation)
        )

    @property
    def is_any(self) -> bool:
        return self._adapter is None

    def validate(self, field: str, value: Any) -> Any:
        """Return the value to store, or raise :class:`TypeMismatch`."""
        if self._adapter is None:
            return value
        # instances of plain classes (subclasses included) are stored as given
        if self._plain_class and isinstance(value, self.annotation):
            return value
        try:
            return self._adapter.validate_python(value, strict=self.strict)
        except ValidationError as exc:
            raise TypeMismatch(field, self, value, exc.errors()) from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueType):
            return NotImplemented
        return self.annotation == other.annotation and self.strict == other.strict

    def __hash__(self) -> int:
        return hash((type_repr(self.annotation), self.strict))

    def __str__(self) -> str:
        return type_repr(self.annotation)

    def __repr__(self) -> str:
        return f"ValueType({type_repr(self.annotation)}, strict={self.strict})"
