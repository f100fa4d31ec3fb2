from typing import Any

import dynrecord


def test_public_names_resolve():
    assert dynrecord.__version__
    for name in dynrecord.__all__:
        assert getattr(dynrecord, name) is not None


def test_models_build_with_default_annotations():
    assert dynrecord.FieldSpec(name="x").annotation is Any
    descriptor = dynrecord.type_descriptor(dynrecord.DynamicRecord)
    assert descriptor.value_type is Any
    assert descriptor.is_plain
    assert descriptor.describe() == "DynamicRecord tag=-- none values=Any"
