"""
Public surface for dynrecord.

Records with runtime-extensible fields, optional fixed (typed, positional)
fields, an optional uniform value type for the dynamic part, and a type-level
tag that keeps otherwise identical records apart for dispatch.
"""

from .core.descriptor import TypeDescriptor
from .core.record import (
    DynamicRecord,
    DynRecord,
    FixedField,
    RecordConfig,
    RecordMeta,
    as_dict,
    field_names,
    fixed_values,
    get_field,
    set_field,
    specialize,
    tag_of,
    type_descriptor,
)
from .core.shape import FieldSpec, Shape
from .core.validation import ValueType
from .declare import dynamic, record_type
from .dispatch import TagDispatcher, tagdispatch
from .errors import (
    ArityError,
    DefinitionError,
    DynamicRecordError,
    FieldConflict,
    KeyNotFound,
    TypeMismatch,
)

__version__ = "0.3.0"

__all__ = [
    "ArityError",
    "DefinitionError",
    "DynRecord",
    "DynamicRecord",
    "DynamicRecordError",
    "FieldConflict",
    "FieldSpec",
    "FixedField",
    "KeyNotFound",
    "RecordConfig",
    "RecordMeta",
    "Shape",
    "TagDispatcher",
    "TypeDescriptor",
    "TypeMismatch",
    "ValueType",
    "as_dict",
    "dynamic",
    "field_names",
    "fixed_values",
    "get_field",
    "record_type",
    "set_field",
    "specialize",
    "tag_of",
    "tagdispatch",
    "type_descriptor",
]
