"""
dynrecord.dispatch  ──  tag-keyed handler selection for DynamicRecords

    @tagdispatch
    def apply(record):
        raise NotImplementedError(tag_of(record))

    @apply.register("add")
    def _(record):
        return record.a + record.b
"""

from __future__ import annotations

from functools import update_wrapper
from types import MappingProxyType
from typing import Any, Callable, Dict, Hashable, Mapping, Tuple

from .core.record import RecordMeta, tag_key, tag_of


def _as_tag(key: Any) -> Hashable:
    return tag_of(key) if isinstance(key, RecordMeta) else key


class TagRegistry:
    """Exact-tag -> handler table."""

    def __init__(self):
        self._handlers: Dict[Tuple[type, Hashable], Callable] = {}

    def register(self, tags: tuple, handler: Callable) -> None:
        for tag in tags:
            self._handlers[tag_key(_as_tag(tag))] = handler

    def lookup(self, tag: Hashable) -> Callable | None:
        return self._handlers.get(tag_key(tag))

    def view(self) -> Mapping[Hashable, Callable]:
        return MappingProxyType({tag: handler for (_, tag), handler in self._handlers.items()})


class TagDispatcher:
    """Callable that picks a handler by ``tag_of(record)``."""

    def __init__(self, default: Callable):
        self.default = default
        self._registry = TagRegistry()
        update_wrapper(self, default)

    @property
    def registry(self) -> Mapping[Hashable, Callable]:
        return self._registry.view()

    def register(self, *tags: Any) -> Callable[[Callable], Callable]:
        """Register the decorated function for tags or record types."""
        if not tags:
            raise TypeError("register() needs at least one tag or record type")

        def decorator(func: Callable) -> Callable:
            self._registry.register(tags, func)
            return func

        return decorator

    def dispatch(self, tag: Hashable) -> Callable:
        return self._registry.lookup(_as_tag(tag)) or self.default

    def __call__(self, record: Any, *args: Any, **kwargs: Any) -> Any:
        return self.dispatch(tag_of(record))(record, *args, **kwargs)


def tagdispatch(func: Callable) -> TagDispatcher:
    return TagDispatcher(func)
