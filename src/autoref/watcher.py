"""Change detection for a component's tracked fields.

An :class:`ObjectWatcher` snapshots the serialized form of the tracked fields
when entered and compares it with their state afterwards. Serialization
follows what a scene file would persist: references to scene objects and
assets compare by identity, plain data compares by value, so replacing a list
with an equal list is not a modification.

Example:
    >>> with ObjectWatcher(component, ["target", "targets"]) as watcher:
    ...     component.target = other
    >>> watcher.is_object_modified()
    True
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Iterable

from autoref.scene import Asset, Component, Node

_MISSING = ("<missing>",)


def serialize_value(value: Any) -> Any:
    """Convert ``value`` into a hashable, value-comparable representation.

    Objects carrying instance state are serialized field by field, so an
    in-place change to one of their attributes shows up as a difference.
    """
    return _serialize(value, set())


def _serialize(value: Any, active: set[int]) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value

    if isinstance(value, (Component, Node, Asset)):
        return ("ref", id(value))

    if isinstance(value, Enum):
        return ("enum", type(value).__qualname__, _serialize(value.value, active))

    # Objects already being serialized further up are cut off at the back reference.
    if id(value) in active:
        return ("cycle", id(value))
    active.add(id(value))
    try:
        return _serialize_state(value, active)
    finally:
        active.discard(id(value))


def _serialize_state(value: Any, active: set[int]) -> Any:
    if isinstance(value, (list, tuple)):
        return ("seq", tuple(_serialize(v, active) for v in value))

    if isinstance(value, (set, frozenset)):
        return ("set", frozenset(_serialize(v, active) for v in value))

    if isinstance(value, dict):
        items = [(_serialize(k, active), _serialize(v, active)) for k, v in value.items()]
        return ("map", tuple(sorted(items, key=repr)))

    if isinstance(value, type):
        return ("type", value.__module__, value.__qualname__)

    if dataclasses.is_dataclass(value):
        return (
            "data",
            type(value).__qualname__,
            tuple((f.name, _serialize(getattr(value, f.name), active)) for f in dataclasses.fields(value)),
        )

    state = getattr(value, "__dict__", None)
    if isinstance(state, dict) and not callable(value):
        return ("obj", type(value).__qualname__, _serialize(state, active))

    return ("value", value)


def take_snapshot(obj: Any, fields: Iterable[str]) -> dict[str, Any]:
    """Serialize the named fields of ``obj``."""
    return {name: serialize_value(getattr(obj, name, _MISSING)) for name in fields}


class ObjectWatcher:
    """Scoped change detector for one object.

    Args:
        obj: The object to watch
        fields: Names of the fields that participate in change detection
    """

    def __init__(self, obj: Any, fields: Iterable[str]) -> None:
        self.obj = obj
        self.fields = tuple(fields)
        self._before: dict[str, Any] | None = None
        self._after: dict[str, Any] | None = None

    def __enter__(self) -> ObjectWatcher:
        self._before = take_snapshot(self.obj, self.fields)
        self._after = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._after = take_snapshot(self.obj, self.fields)

    def _current(self) -> dict[str, Any]:
        if self._after is not None:
            return self._after
        return take_snapshot(self.obj, self.fields)

    def changed_fields(self) -> list[str]:
        """Names of the tracked fields whose serialized value changed."""
        if self._before is None:
            raise RuntimeError("ObjectWatcher was never entered")
        current = self._current()
        return [name for name in self.fields if self._before[name] != current[name]]

    def is_object_modified(self) -> bool:
        return bool(self.changed_fields())
