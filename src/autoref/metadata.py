"""Per-type auto-reference metadata.

:func:`build_type_metadata` inspects a component class once: its annotated
fields become :class:`FieldDescriptor` records and its ``@on_after_sync``
methods become callback names. Invalid declarations are reported as
:class:`~autoref.status.LogItem` diagnostics and excluded, never raised.
:class:`MetadataCache` memoizes the result per class.
"""

from __future__ import annotations

import collections.abc
import inspect
import logging
import types
from dataclasses import dataclass, field
from threading import Lock
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin, get_type_hints

from autoref.attributes import (
    AutoReferenceAttribute,
    FilterAttribute,
    Name,
    Path,
    Sync,
    Synced,
    is_after_sync_callback,
)
from autoref.scene import Asset, Component, Node
from autoref.status import LogItem, Severity, format_count
from autoref.strategies import Strategy
from autoref.sync_mode import SyncMode, resolve_mode

logger = logging.getLogger(__name__)

_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence)


@dataclass(frozen=True)
class FieldDescriptor:
    """One auto-reference field of a component type."""

    name: str
    strategy: Strategy
    attribute_name: str
    target_type: type
    is_sequence: bool = False
    container: type = list
    """Concrete type written to sequence fields (``list`` or ``tuple``)."""
    name_filter: str | None = None
    path: str | None = None
    sync_mode: SyncMode = SyncMode.DEFAULT
    include_self: bool = False

    @property
    def mode(self) -> SyncMode:
        """The sync mode with ``DEFAULT`` resolved for this field's arity."""
        return resolve_mode(self.sync_mode, self.is_sequence)


@dataclass(frozen=True)
class TypeMetadata:
    """Immutable auto-reference information about one component type."""

    type: type
    fields: tuple[FieldDescriptor, ...] = ()
    callbacks: tuple[str, ...] = ()
    tracked_fields: tuple[str, ...] = ()
    messages: tuple[LogItem, ...] = ()
    declared_callbacks_count: int = 0

    @property
    def is_syncable(self) -> bool:
        return len(self.fields) + len(self.callbacks) > 0

    @property
    def has_mutable_fields(self) -> bool:
        return len(self.fields) + len(self.tracked_fields) > 0

    @property
    def watched_fields(self) -> tuple[str, ...]:
        """Every field whose value the change detector compares."""
        return tuple(d.name for d in self.fields) + self.tracked_fields


@dataclass
class _Builder:
    cls: type
    messages: list[LogItem] = field(default_factory=list)

    def error(self, member: str, attribute: str, message: str) -> None:
        self.messages.append(LogItem(Severity.ERROR, self.cls, member, attribute, message))

    def warning(self, member: str, attribute: str, message: str) -> None:
        self.messages.append(LogItem(Severity.WARNING, self.cls, member, attribute, message))

    def build(self) -> TypeMetadata:
        descriptors: list[FieldDescriptor] = []
        tracked: list[str] = []

        try:
            hints = get_type_hints(self.cls, include_extras=True)
        except Exception as e:  # unresolvable forward references, bad annotations
            self.error("<annotations>", "", f"Could not evaluate type annotations: {e}")
            hints = {}

        for member, hint in hints.items():
            if get_origin(hint) is ClassVar or get_origin(hint) is not Annotated:
                continue

            declared, *extras = get_args(hint)
            strategies = [e for e in extras if isinstance(e, AutoReferenceAttribute)]
            filters = [e for e in extras if isinstance(e, FilterAttribute)]
            is_synced = any(isinstance(e, Synced) for e in extras)

            if not strategies:
                if is_synced:
                    tracked.append(member)
                for f in filters:
                    self.warning(
                        member,
                        f.attribute_name,
                        f"{f.attribute_name} has no effect without an auto-reference attribute",
                    )
                continue

            if len(strategies) > 1:
                names = ", ".join(s.attribute_name for s in strategies)
                self.error(member, strategies[1].attribute_name, f"Multiple auto-reference attributes: {names}")
                continue

            descriptor = self._build_field(member, declared, strategies[0], filters)
            if descriptor is not None:
                descriptors.append(descriptor)

        callbacks, declared_count = self._collect_callbacks()

        return TypeMetadata(
            type=self.cls,
            fields=tuple(descriptors),
            callbacks=tuple(callbacks),
            tracked_fields=tuple(tracked),
            messages=tuple(self.messages),
            declared_callbacks_count=declared_count,
        )

    def _build_field(
        self,
        member: str,
        declared: Any,
        attribute: AutoReferenceAttribute,
        filters: list[FilterAttribute],
    ) -> FieldDescriptor | None:
        strategy = attribute.strategy
        attr_name = attribute.attribute_name

        target, is_sequence, container, problem = _unwrap_field_type(declared)
        if problem:
            self.error(member, attr_name, problem)
            return None

        if strategy is Strategy.EXTERNAL:
            allowed: tuple[type, ...] = (Component, Node, Asset)
            if not issubclass(target, allowed):
                self.error(
                    member,
                    attr_name,
                    f"{target.__name__} cannot be loaded from assets; "
                    "expected a Component, Node or Asset type",
                )
                return None
        elif not issubclass(target, Component):
            self.error(member, attr_name, f"{target.__name__} is not a Component type")
            return None

        names = [f for f in filters if isinstance(f, Name)]
        paths = [f for f in filters if isinstance(f, Path)]
        modes = [f for f in filters if isinstance(f, Sync)]

        valid = True
        for kind, found, accepted in (("Name", names, strategy.accepts_name), ("Path", paths, strategy.accepts_path)):
            if found and not accepted:
                self.error(member, kind, f"{kind} cannot be used with {attr_name}")
                valid = False
            elif len(found) > 1:
                self.error(member, kind, f"Multiple {kind} attributes")
                valid = False

        if strategy.requires_path and not paths:
            self.error(member, attr_name, f"{attr_name} requires a Path attribute")
            valid = False

        if len(modes) > 1:
            self.error(member, "Sync", "Multiple Sync attributes")
            valid = False

        if not valid:
            return None

        return FieldDescriptor(
            name=member,
            strategy=strategy,
            attribute_name=attr_name,
            target_type=target,
            is_sequence=is_sequence,
            container=container,
            name_filter=names[0].value if names else None,
            path=paths[0].value if paths else None,
            sync_mode=modes[0].mode if modes else SyncMode.DEFAULT,
            include_self=getattr(attribute, "include_self", False),
        )

    def _collect_callbacks(self) -> tuple[list[str], int]:
        ordered: list[str] = []
        for klass in reversed(self.cls.__mro__):
            for member, value in vars(klass).items():
                if is_after_sync_callback(value) and member not in ordered:
                    ordered.append(member)

        callbacks = []
        for member in ordered:
            func = inspect.getattr_static(self.cls, member)
            if not is_after_sync_callback(func):
                # Overridden without the marker.
                continue
            if isinstance(func, (staticmethod, classmethod)):
                self.warning(member, "on_after_sync", "After-sync callbacks must be instance methods")
                continue
            try:
                params = list(inspect.signature(func).parameters.values())[1:]
            except (TypeError, ValueError):
                params = []
            required = [
                p
                for p in params
                if p.default is inspect.Parameter.empty
                and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            ]
            if required:
                self.warning(
                    member,
                    "on_after_sync",
                    f"After-sync callbacks must take no parameters, found: {', '.join(p.name for p in required)}",
                )
                continue
            callbacks.append(member)

        return callbacks, len(ordered)


def _unwrap_field_type(declared: Any) -> tuple[Any, bool, type, str | None]:
    """Split a declared field type into (target, is_sequence, container, problem)."""
    declared = _strip_optional(declared)

    origin = get_origin(declared)
    is_sequence = False
    container: type = list
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(declared)
        if origin is tuple:
            if len(args) != 2 or args[1] is not Ellipsis:
                return None, False, list, "Only variable-length tuple[T, ...] fields are supported"
            container = tuple
        elif len(args) != 1:
            return None, False, list, "Sequence fields need an element type"
        is_sequence = True
        declared = _strip_optional(args[0])

    if not isinstance(declared, type):
        return None, is_sequence, container, f"Unsupported field type: {declared!r}"
    return declared, is_sequence, container, None


def _strip_optional(declared: Any) -> Any:
    if get_origin(declared) in (Union, types.UnionType):
        args = [a for a in get_args(declared) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return declared


def build_type_metadata(cls: type) -> TypeMetadata:
    """Inspect ``cls`` and build its :class:`TypeMetadata`."""
    metadata = _Builder(cls).build()
    logger.debug(
        "Built auto-reference metadata for %s: %s, %s, %s",
        cls.__qualname__,
        format_count(len(metadata.fields), "field"),
        format_count(len(metadata.callbacks), "callback"),
        format_count(len(metadata.messages), "message"),
    )
    return metadata


class MetadataCache:
    """Memoizes :class:`TypeMetadata` per type.

    When ``enabled`` is False every lookup rebuilds, which is slower but can
    never serve metadata that went stale after classes were reloaded.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._entries: dict[type, TypeMetadata] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cls: type) -> bool:
        return cls in self._entries

    @property
    def count(self) -> int:
        return len(self._entries)

    def get_or_build(self, cls: type) -> TypeMetadata:
        if not self.enabled:
            return build_type_metadata(cls)

        with self._lock:
            metadata = self._entries.get(cls)
            if metadata is None:
                metadata = self._entries[cls] = build_type_metadata(cls)
            return metadata

    def clear(self) -> int:
        """Discard every entry and return how many were discarded."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()

        if count:
            logger.info("Cleared cached Auto-Reference information of %s.", format_count(count, "type"))
        return count
