from typing import Any

import pytest

from dynrecord import DefinitionError, FieldSpec, Shape, TypeMismatch
from dynrecord.core.shape import parse_fields


def test_parse_fields_forms():
    assert parse_fields("x y") == (FieldSpec(name="x"), FieldSpec(name="y"))
    assert parse_fields("x, y") == parse_fields(["x", "y"])
    assert parse_fields({"x": int}) == (FieldSpec(name="x", annotation=int),)
    assert parse_fields([("x", int), FieldSpec(name="y", annotation=str)]) == (
        FieldSpec(name="x", annotation=int),
        FieldSpec(name="y", annotation=str),
    )
    assert parse_fields(None) == ()
    assert parse_fields("") == ()


def test_shape_lookup():
    shape = Shape(parse_fields({"x": int, "label": Any}))
    assert shape.names == ("x", "label")
    assert len(shape) == 2
    assert "x" in shape
    assert "z" not in shape
    assert shape.index_of("label") == 1
    assert shape.index_of("z") is None
    assert [spec.name for spec in shape] == ["x", "label"]
    assert repr(shape) == "Shape(x: int, label: Any)"


def test_shape_validate():
    shape = Shape(parse_fields({"x": int}))
    assert shape.validate(0, 5) == 5
    with pytest.raises(TypeMismatch):
        shape.validate(0, "5")
    assert Shape(parse_fields({"x": int}), strict=False).validate(0, "5") == 5


def test_extend_and_equality():
    base = Shape(parse_fields("x"))
    extended = base.extend(parse_fields("y"))
    assert extended.names == ("x", "y")
    assert base.names == ("x",)
    assert extended == Shape(parse_fields("x y"))
    assert extended != Shape(parse_fields("x y"), strict=False)
    assert hash(extended) == hash(Shape(parse_fields("x y")))
    assert not Shape()


def test_shape_rejects_duplicates():
    with pytest.raises(DefinitionError):
        Shape(parse_fields("x")).extend(parse_fields("x"))


def test_field_spec_text():
    assert str(FieldSpec(name="x", annotation=int)) == "x: int"
    assert str(FieldSpec(name="y")) == "y: Any"
