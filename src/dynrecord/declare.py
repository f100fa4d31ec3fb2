"""
dynrecord.declare  ──  build record types from field lists

    Point = record_type("Point", "x y")
    Pixel = record_type("Pixel", {"x": int, "y": int, "color": str}, value_type=float)

    @dynamic
    class Vector:
        x: float
        y: float

        def norm(self) -> float:
            return (self.x ** 2 + self.y ** 2) ** 0.5

All work happens once, when the type is defined.
"""

from __future__ import annotations

import inspect
import sys
from typing import Any, Callable, Optional, Type, Union

from .core.record import DynamicRecord, RecordMeta, _is_classvar
from .errors import DefinitionError

# class-dict entries that belong to the plain class object, not to its body
_CLASS_INTERNALS = frozenset(
    {
        "__dict__",
        "__weakref__",
        "__annotations__",
        "__annotate__",
        "__annotate_func__",
        "__annotations_cache__",
        "__orig_bases__",
        "__parameters__",
        "__type_params__",
    }
)


def record_type(
    name: str,
    fields: Any = (),
    *,
    base: Type[DynamicRecord] = DynamicRecord,
    module: Optional[str] = None,
    **config: Any,
) -> Type[DynamicRecord]:
    """
    Create a record type called ``name`` with the given fixed fields.

    ``fields`` is ``"x y"``, a mapping ``name -> annotation`` or an iterable
    of names / ``(name, annotation)`` pairs. ``config`` takes the
    ``tag``/``value_type``/``strict`` settings.
    """
    if not isinstance(base, RecordMeta):
        raise DefinitionError(f"base must be a record type, got {base!r}")
    if module is None:
        module = sys._getframe(1).f_globals.get("__name__", "__main__")
    ns = {"__module__": module, "__qualname__": name}
    return RecordMeta(name, (base,), ns, fields=fields, **config)


def dynamic(
    cls: Optional[type] = None, **config: Any
) -> Union[Type[DynamicRecord], Callable[[type], Type[DynamicRecord]]]:
    """Turn a plain annotated class into a record type, keeping its methods."""

    def wrap(cls: type) -> Type[DynamicRecord]:
        if isinstance(cls, RecordMeta):
            raise DefinitionError(f"{cls.__name__} is already a record type")
        if cls.__bases__ != (object,):
            raise DefinitionError(f"@dynamic expects a plain class, {cls.__name__} has bases")
        if getattr(cls, "__parameters__", ()) or getattr(cls, "__type_params__", ()):
            raise DefinitionError(f"{cls.__name__}: parametrized record types are not supported")
        try:
            annotations = inspect.get_annotations(cls, eval_str=True)
        except NameError as exc:
            raise DefinitionError(f"{cls.__name__}: cannot resolve annotation: {exc}") from exc

        fields = [(n, a) for n, a in annotations.items() if not _is_classvar(a)]
        ns = {k: v for k, v in vars(cls).items() if k not in _CLASS_INTERNALS}
        return RecordMeta(cls.__name__, (DynamicRecord,), ns, fields=fields, **config)

    if cls is None:
        return wrap
    return wrap(cls)
