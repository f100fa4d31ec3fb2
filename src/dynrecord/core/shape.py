"""
Fixed-field shapes.

A :class:`Shape` is the ordered, immutable list of fixed fields of a record
type plus the name -> slot index table, computed once when the type is
defined.
"""

from __future__ import annotations

import keyword
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from pydantic import BaseModel, Field

from ..errors import DefinitionError
from .validation import ValueType, has_type_params, type_repr


class FieldSpec(BaseModel):
    """``name: annotation`` of one fixed field."""

    name: str
    annotation: Any = Field(default=Any)
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def __str__(self) -> str:
        return f"{self.name}: {type_repr(self.annotation)}"


def _check_name(name: Any) -> str:
    if not isinstance(name, str):
        raise DefinitionError(f"field names must be strings, got {name!r}")
    if not name.isidentifier() or keyword.iskeyword(name):
        raise DefinitionError(f"{name!r} is not a valid field name")
    if name.startswith("_"):
        raise DefinitionError(f"field name {name!r} must not start with an underscore")
    return name


def parse_fields(spec: Any) -> Tuple[FieldSpec, ...]:
    """
    Accepts ``"x y z"`` / ``"x, y"``, a mapping ``name -> annotation``, or an
    iterable of names, ``(name, annotation)`` pairs and :class:`FieldSpec`.
    """
    if spec is None:
        return ()
    if isinstance(spec, str):
        items: Iterable[Any] = spec.replace(",", " ").split()
    elif isinstance(spec, Mapping):
        items = spec.items()
    else:
        try:
            items = list(spec)
        except TypeError:
            raise DefinitionError(f"cannot read fields from {spec!r}") from None

    result = []
    for item in items:
        if isinstance(item, FieldSpec):
            result.append(item)
        elif isinstance(item, str):
            result.append(FieldSpec(name=_check_name(item)))
        elif isinstance(item, tuple) and len(item) == 2:
            name, annotation = item
            result.append(FieldSpec(name=_check_name(name), annotation=annotation))
        else:
            raise DefinitionError(f"cannot interpret field declaration {item!r}")
    return tuple(result)


class Shape:
    """Ordered fixed fields with one :class:`ValueType` per slot."""

    __slots__ = ("fields", "strict", "_index", "_types")

    def __init__(self, fields: Iterable[FieldSpec] = (), *, strict: bool = True):
        self.fields: Tuple[FieldSpec, ...] = tuple(fields)
        self.strict = strict
        self._index: Dict[str, int] = {}
        for index, spec in enumerate(self.fields):
            _check_name(spec.name)
            if spec.name in self._index:
                raise DefinitionError(f"field {spec.name!r} declared more than once")
            if has_type_params(spec.annotation):
                raise DefinitionError(
                    f"field {spec.name!r}: parametrized annotations are not supported"
                )
            self._index[spec.name] = index
        self._types = tuple(
            ValueType(spec.annotation, strict=strict) for spec in self.fields
        )

    def extend(self, fields: Iterable[FieldSpec], *, strict: Optional[bool] = None) -> "Shape":
        return Shape(
            self.fields + tuple(fields),
            strict=self.strict if strict is None else strict,
        )

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def index_of(self, name: str) -> Optional[int]:
        return self._index.get(name)

    def validate(self, index: int, value: Any) -> Any:
        return self._types[index].validate(self.fields[index].name, value)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self.fields == other.fields and self.strict == other.strict

    def __hash__(self) -> int:
        return hash((self.names, self.strict))

    def __repr__(self) -> str:
        return f"Shape({', '.join(str(spec) for spec in self.fields)})"
