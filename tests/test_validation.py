import enum
from typing import Any, Optional, TypeVar

import pytest
from pydantic import BaseModel, ValidationError

from dynrecord import DefinitionError, DynamicRecord, TypeMismatch, ValueType
from dynrecord.core.validation import has_type_params, is_annotation, type_repr

T = TypeVar("T")


class Animal:
    pass


class Dog(Animal):
    pass


class Settings(BaseModel):
    level: int


class Color(enum.Enum):
    RED = "red"


class Level(enum.IntEnum):
    LOW = 1


class Name(str):
    pass


def test_any_is_unchecked():
    vt = ValueType(Any)
    value = object()
    assert vt.is_any
    assert vt.validate("f", value) is value
    assert ValueType(object).is_any


def test_strict_rejects_coercion():
    vt = ValueType(int)
    with pytest.raises(TypeMismatch) as info:
        vt.validate("count", "3")
    assert info.value.field == "count"
    assert info.value.errors
    assert isinstance(info.value.__cause__, ValidationError)
    assert str(info.value) == "field 'count' expects int, got str: '3'"


def test_lax_mode_coerces():
    assert ValueType(int, strict=False).validate("count", "3") == 3


def test_subclass_instances_are_accepted():
    dog = Dog()
    assert ValueType(Animal).validate("pet", dog) is dog
    with pytest.raises(TypeMismatch):
        ValueType(Dog).validate("pet", Animal())


def test_accepted_instances_are_stored_unchanged():
    o = DynamicRecord[int]()
    o.flag = True
    o.level = Level.LOW
    assert o.flag is True
    assert o.level is Level.LOW

    s = DynamicRecord[str](name=Name("x"))
    assert type(s.name) is Name

    assert ValueType(float).validate("f", 3) == 3.0
    with pytest.raises(TypeMismatch):
        o.other = 1.5


def test_generic_and_optional_annotations():
    assert ValueType(list[int]).validate("xs", [1, 2]) == [1, 2]
    with pytest.raises(TypeMismatch):
        ValueType(list[int]).validate("xs", ["a"])
    assert ValueType(Optional[int]).validate("n", None) is None


def test_model_types_keep_their_own_config():
    settings = Settings(level=1)
    assert ValueType(Settings).validate("s", settings) is settings
    with pytest.raises(TypeMismatch):
        ValueType(Settings).validate("s", 1)


def test_record_types_as_value_types():
    Nested = DynamicRecord[int]
    inner = Nested(a=1)
    outer = DynamicRecord[Nested](child=inner)
    assert outer.child is inner
    with pytest.raises(TypeMismatch):
        outer.other = DynamicRecord(a=1)


def test_type_params_are_rejected():
    with pytest.raises(DefinitionError):
        ValueType(T)
    with pytest.raises(DefinitionError):
        ValueType(dict[str, T])
    assert has_type_params(dict[str, list[T]])
    assert not has_type_params(dict[str, int])


def test_value_type_equality():
    assert ValueType(int) == ValueType(int)
    assert ValueType(int) != ValueType(int, strict=False)
    assert hash(ValueType(int)) == hash(ValueType(int))
    assert repr(ValueType(int)) == "ValueType(int, strict=True)"


def test_is_annotation():
    assert is_annotation(int)
    assert is_annotation(list[int])
    assert is_annotation(Any)
    assert is_annotation(Optional[str])
    assert not is_annotation("tag")
    assert not is_annotation(Color.RED)
    assert not is_annotation(None)


def test_type_repr():
    assert type_repr(int) == "int"
    assert type_repr(Any) == "Any"
    assert type_repr(list[int]) == "list[int]"
    assert type_repr(dict[str, int]) == "dict[str, int]"
