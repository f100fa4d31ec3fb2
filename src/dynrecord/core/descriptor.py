"""
Frozen description of a record *type*, the thing external dispatch code
compares.

* ``fields`` is ``None`` for the unspecific variant (no fixed fields).
* Descriptors compare and hash by value.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field

from .shape import FieldSpec
from .validation import type_repr


class TypeDescriptor(BaseModel):
    name: str
    tag: Any = None
    fields: Optional[Tuple[FieldSpec, ...]] = None
    value_type: Any = Field(default=Any)
    strict: bool = True
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def is_plain(self) -> bool:
        """Untagged and unconstrained."""
        return self.tag is None and self.value_type is Any

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields or ())

    def describe(self) -> str:
        """One line: ``Point tag='Point' fixed(x: int, y: float) values=Any``."""
        tag = "--" if self.tag is None else repr(self.tag)
        fixed = (
            "none"
            if self.fields is None
            else f"fixed({', '.join(str(spec) for spec in self.fields)})"
        )
        return f"{self.name} tag={tag} {fixed} values={type_repr(self.value_type)}"
