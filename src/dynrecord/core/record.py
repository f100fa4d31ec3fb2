"""
DynamicRecord kernel – fixed slots + open dynamic map.

* Fixed fields are declared once per record type (annotations, ``fields=``
  or the helpers in :mod:`dynrecord.declare`) and live in positional slots
  reached through class-level descriptors.
* Every other field lives in a per-instance dict, optionally constrained to
  a single value type.
* The tag is part of the type: ``DynamicRecord["a"]`` and
  ``DynamicRecord["b"]`` are distinct (cached) classes.
"""

from __future__ import annotations

import inspect
import logging
import reprlib
from abc import ABCMeta
from collections.abc import MutableMapping
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    Hashable,
    Iterator,
    Optional,
    Tuple,
    Type,
    TypedDict,
    TypeVar,
    get_origin,
)

from ..errors import ArityError, DefinitionError, FieldConflict, KeyNotFound
from .descriptor import TypeDescriptor
from .shape import FieldSpec, Shape, parse_fields
from .validation import ValueType, is_annotation, type_repr

logger = logging.getLogger(__name__)

T_Record = TypeVar("T_Record", bound="DynamicRecord")

_UNSET: Any = type("_Unset", (), {"__repr__": lambda self: "<unset>"})()
_CONFIG_KEYS = ("tag", "value_type", "strict")


class RecordConfig(TypedDict, total=False):
    """Per-type settings, read from ``record_config`` and class keywords."""

    tag: Hashable
    value_type: Any
    strict: bool


# helpers
def _collect_config(name: str, ns: Dict[str, Any], kw: Dict[str, Any]) -> RecordConfig:
    config: Dict[str, Any] = dict(ns.pop("record_config", None) or {})
    unknown = set(config) - set(_CONFIG_KEYS)
    if unknown:
        raise DefinitionError(f"{name}: unknown record_config keys {sorted(unknown)}")
    for key in _CONFIG_KEYS:
        if key in kw:
            config[key] = kw.pop(key)
    return config  # type: ignore[return-value]


def _is_classvar(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _declared_fields(cls: type, fields: Any) -> Tuple[FieldSpec, ...]:
    try:
        annotations = inspect.get_annotations(cls, eval_str=True)
    except NameError as exc:
        raise DefinitionError(f"{cls.__name__}: cannot resolve annotation: {exc}") from exc
    annotated = [
        (name, annotation)
        for name, annotation in annotations.items()
        if name != "record_config" and not _is_classvar(annotation)
    ]
    if fields is not None and annotated:
        raise DefinitionError(
            f"{cls.__name__}: declare fixed fields with annotations or fields=, not both"
        )
    return parse_fields(fields if fields is not None else annotated)


def _type_label(cls: type) -> str:
    origin = cls.__record_origin__
    tag, value_type = cls.__record_tag__, cls.__record_value_type__
    if (tag is None or tag == origin.__name__) and value_type.is_any:
        return origin.__name__
    return f"{origin.__name__}[{'--' if tag is None else repr(tag)}, {value_type}]"


def tag_key(tag: Any) -> Tuple[type, Any]:
    # 1, 1.0 and True compare equal but name different tags
    return type(tag), tag


def _as_pair(item: Any) -> Tuple[str, Any]:
    if isinstance(item, (tuple, list)) and len(item) == 2 and isinstance(item[0], str):
        return item[0], item[1]
    raise TypeError(f"expected a (name, value) pair, got {item!r}")


def _check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise TypeError(f"record keys must be strings, got {type(key).__name__}")
    return key


def _class_defines(cls: type, name: str) -> bool:
    # instance-visible class attributes only; metaclass methods do not count
    return any(name in vars(klass) for klass in cls.__mro__)


def _reserved(cls: type, name: str) -> bool:
    return name.startswith("_") or _class_defines(cls, name)


class FixedField:
    """Class-level read accessor for one fixed slot; writes go through set_field."""

    __slots__ = ("name", "index")

    def __init__(self, name: str, index: int):
        self.name = name
        self.index = index

    def __get__(self, instance: Optional["DynamicRecord"], owner: type) -> Any:
        if instance is None:
            return self
        return instance._fixed[self.index]

    def __repr__(self) -> str:
        return f"<fixed field {self.name!r} #{self.index}>"


# metaclass that builds shape, tag and value type
class RecordMeta(ABCMeta):
    """Resolve config, shape and tag at class-creation time."""

    def __new__(
        mcls,
        name: str,
        bases: Tuple[type, ...],
        ns: Dict[str, Any],
        *,
        fields: Any = None,
        _specializes: Optional["RecordMeta"] = None,
        **kw: Any,
    ):
        config = _collect_config(name, ns, kw)
        if Generic in bases or ns.get("__type_params__"):
            raise DefinitionError(f"{name}: parametrized record types are not supported")
        ns.setdefault("__slots__", ())
        cls = super().__new__(mcls, name, bases, ns, **kw)

        parent = next((b for b in cls.__mro__[1:] if isinstance(b, RecordMeta)), None)
        if parent is None:  # DynamicRecord itself
            cls._install(origin=cls, shape=Shape(), tag=None, value_type=Any, strict=True)
            return cls

        strict = config.get("strict", parent.__record_strict__)
        value_type = config.get("value_type", parent.__record_value_type__.annotation)

        if _specializes is not None:
            origin = _specializes
            shape = origin.__record_shape__
            tag = config.get("tag", parent.__record_tag__)
        else:
            origin = cls
            declared = _declared_fields(cls, fields)
            for spec in declared:
                if spec.name in ns or _class_defines(parent, spec.name):
                    raise DefinitionError(
                        f"{name}: field {spec.name!r} clashes with an attribute of "
                        f"{parent.__name__} or carries a default (not supported)"
                    )
            shape = parent.__record_shape__.extend(declared, strict=strict)
            offset = len(parent.__record_shape__)
            for index, spec in enumerate(declared, offset):
                setattr(cls, spec.name, FixedField(spec.name, index))
            tag = config.get("tag", name)

        try:
            hash(tag)
        except TypeError:
            raise DefinitionError(f"{name}: tag {tag!r} is not hashable") from None

        cls._install(origin=origin, shape=shape, tag=tag, value_type=value_type, strict=strict)
        logger.debug(
            "defined record type %s (tag=%r, fields=%s, values=%s)",
            _type_label(cls),
            tag,
            shape.names,
            type_repr(value_type),
        )
        return cls

    def __init__(cls, name, bases, ns, **kw):
        super().__init__(name, bases, ns)

    def _install(cls, *, origin, shape, tag, value_type, strict) -> None:
        cls.__record_origin__ = origin
        cls.__record_shape__ = shape
        cls.__record_tag__ = tag
        cls.__record_strict__ = strict
        cls.__record_value_type__ = ValueType(value_type, strict=strict)
        if origin is cls:
            cls.__record_specializations__ = {}
        cls.__record_descriptor__ = TypeDescriptor(
            name=cls.__name__,
            tag=tag,
            fields=shape.fields or None,
            value_type=value_type,
            strict=strict,
        )


# DynamicRecord base
class DynamicRecord(MutableMapping, metaclass=RecordMeta):
    """
    Record whose fields can be added and modified at runtime.

        >>> d = DynamicRecord(("a", 1), ("b", "2"), c=3, d=[4])
        >>> d.e = 6.0
        >>> d.e + d.a - d.d[0]
        3.0

    The mapping protocol (``len``, ``in``, ``items()``, ``d[k]`` ...) covers
    the dynamic entries only; fixed fields are reached as attributes.
    """

    __slots__ = ("_fixed", "_dynamic")

    __record_origin__: ClassVar[type]
    __record_shape__: ClassVar[Shape]
    __record_tag__: ClassVar[Hashable]
    __record_strict__: ClassVar[bool]
    __record_value_type__: ClassVar[ValueType]
    __record_specializations__: ClassVar[Dict[Tuple[Any, Any], type]]
    __record_descriptor__: ClassVar[TypeDescriptor]

    def __init__(self, /, *args: Any, **kwargs: Any) -> None:
        cls = type(self)
        shape = cls.__record_shape__
        count = len(shape)
        if len(args) < count:
            raise ArityError(
                f"{_type_label(cls)} takes {count} positional value(s) for "
                f"{', '.join(shape.names)}, got {len(args)}"
            )
        object.__setattr__(
            self, "_fixed", [shape.validate(i, value) for i, value in enumerate(args[:count])]
        )
        object.__setattr__(self, "_dynamic", {})
        for item in args[count:]:
            name, value = _as_pair(item)
            self[name] = value
        for name, value in kwargs.items():
            self[name] = value

    def __class_getitem__(cls, params: Any) -> type:
        if not isinstance(params, tuple):
            params = (params,)
        if len(params) == 1:
            if is_annotation(params[0]):
                return specialize(cls, value_type=params[0])
            return specialize(cls, tag=params[0])
        if len(params) == 2:
            return specialize(cls, tag=params[0], value_type=params[1])
        raise DefinitionError(
            f"{cls.__name__}[...] takes a tag, a value type or both, got {len(params)} arguments"
        )

    # ---- mapping protocol (dynamic layer) --------------------------------
    def __getitem__(self, key: str) -> Any:
        try:
            return self._dynamic[key]
        except KeyError:
            raise KeyNotFound(key, type(self)) from None

    def __setitem__(self, key: str, value: Any) -> None:
        cls = type(self)
        if _check_key(key) in cls.__record_shape__:
            raise FieldConflict(
                f"{key!r} is a fixed field of {cls.__name__}; assign it as an attribute"
            )
        self._dynamic[key] = cls.__record_value_type__.validate(key, value)

    def __delitem__(self, key: str) -> None:
        if key in type(self).__record_shape__:
            raise FieldConflict(f"fixed field {key!r} cannot be removed")
        try:
            del self._dynamic[key]
        except KeyError:
            raise KeyNotFound(key, type(self)) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._dynamic)

    def __len__(self) -> int:
        return len(self._dynamic)

    def __contains__(self, key: object) -> bool:
        return key in self._dynamic

    def pop(self, key: str, *default: Any) -> Any:
        if key in type(self).__record_shape__:
            raise FieldConflict(f"fixed field {key!r} cannot be removed")
        return super().pop(key, *default)

    def setdefault(self, key: str, default: Any = None) -> Any:
        """Insert ``default`` if ``key`` is absent; return the stored value."""
        if key not in self._dynamic:
            self[key] = default
        return self._dynamic[key]

    # ---- attribute access ------------------------------------------------
    def __getattr__(self, name: str) -> Any:
        # only reached for names the class does not define
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._dynamic[name]
        except KeyError:
            raise KeyNotFound(name, type(self)) from None

    def __setattr__(self, name: str, value: Any) -> None:
        cls = type(self)
        if name not in cls.__record_shape__ and _reserved(cls, name):
            raise AttributeError(
                f"{name!r} is reserved by {cls.__name__}; use record[{name!r}] = ..."
            )
        set_field(self, name, value)

    def __delattr__(self, name: str) -> None:
        cls = type(self)
        if name not in cls.__record_shape__ and _reserved(cls, name):
            raise AttributeError(f"{name!r} is reserved by {cls.__name__}")
        del self[name]

    def __dir__(self):
        return sorted(set(super().__dir__()) | {k for k in self._dynamic if k.isidentifier()})

    # ---- comparison / copying --------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicRecord):
            return NotImplemented
        return (
            type(self) is type(other)
            and self._fixed == other._fixed
            and self._dynamic == other._dynamic
        )

    __hash__ = None  # type: ignore[assignment]

    def __getstate__(self):
        return self._fixed, self._dynamic

    def __setstate__(self, state) -> None:
        fixed, dynamic = state
        object.__setattr__(self, "_fixed", list(fixed))
        object.__setattr__(self, "_dynamic", dict(dynamic))

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        cls = type(self)
        fixed = ", ".join(
            f"{spec.name}={value!r}" for spec, value in zip(cls.__record_shape__, self._fixed)
        )
        count = len(self._dynamic)
        body = f"{count} {'entry' if count == 1 else 'entries'}"
        if count:
            body += ": " + ", ".join(f"{k}={v!r}" for k, v in self._dynamic.items())
        return f"{_type_label(cls)}({fixed + '; ' if fixed else ''}{body})"


DynRecord = DynamicRecord


def _record_class(obj: Any) -> Type[DynamicRecord]:
    if isinstance(obj, RecordMeta):
        return obj
    if isinstance(obj, DynamicRecord):
        return type(obj)
    raise TypeError(f"expected a DynamicRecord or record type, got {type(obj).__name__}")


def specialize(
    cls: Type[T_Record], tag: Any = _UNSET, value_type: Any = _UNSET
) -> Type[T_Record]:
    """Return the (cached) variant of ``cls`` with another tag and/or value type."""
    origin = cls.__record_origin__
    tag = cls.__record_tag__ if tag is _UNSET else tag
    if value_type is _UNSET:
        value_type = cls.__record_value_type__.annotation
    if (
        tag_key(tag) == tag_key(origin.__record_tag__)
        and value_type == origin.__record_value_type__.annotation
    ):
        return origin

    key = (tag_key(tag), value_type)
    cache = origin.__record_specializations__
    try:
        return cache[key]
    except KeyError:
        pass
    except TypeError:
        raise DefinitionError(
            f"tag {tag!r} and value type {type_repr(value_type)} must be hashable"
        ) from None

    variant = RecordMeta(
        origin.__name__,
        (origin,),
        {"__module__": origin.__module__, "__qualname__": origin.__qualname__},
        tag=tag,
        value_type=value_type,
        _specializes=origin,
    )
    variant.__name__ = variant.__qualname__ = _type_label(variant)
    variant.__record_descriptor__ = variant.__record_descriptor__.model_copy(
        update={"name": variant.__name__}
    )
    cache[key] = variant
    logger.debug("specialized %s as %s", origin.__name__, variant.__name__)
    return variant


# introspection
def tag_of(obj: Any) -> Hashable:
    return _record_class(obj).__record_tag__


def type_descriptor(obj: Any) -> TypeDescriptor:
    return _record_class(obj).__record_descriptor__


def field_names(obj: Any) -> Tuple[str, ...]:
    """Fixed field names followed by the current dynamic keys."""
    names = _record_class(obj).__record_shape__.names
    if isinstance(obj, DynamicRecord):
        names += tuple(obj._dynamic)
    return names


def get_field(record: DynamicRecord, name: str, default: Any = _UNSET) -> Any:
    shape = type(record).__record_shape__
    index = shape.index_of(name)
    if index is not None:
        return record._fixed[index]
    try:
        return record._dynamic[name]
    except KeyError:
        if default is _UNSET:
            raise KeyNotFound(name, type(record)) from None
        return default


def set_field(record: DynamicRecord, name: str, value: Any) -> None:
    shape = type(record).__record_shape__
    index = shape.index_of(name)
    if index is None:
        record[name] = value
    else:
        record._fixed[index] = shape.validate(index, value)


def fixed_values(record: DynamicRecord) -> Dict[str, Any]:
    return dict(zip(type(record).__record_shape__.names, record._fixed))


def as_dict(record: DynamicRecord) -> Dict[str, Any]:
    """Fixed fields merged with the dynamic entries, fixed first."""
    merged = fixed_values(record)
    merged.update(record._dynamic)
    return merged
