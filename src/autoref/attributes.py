"""Field and method annotations understood by the metadata builder.

Fields are annotated with ``typing.Annotated``::

    class Player(Component):
        body: Annotated[Rigidbody | None, Get()] = None
        hand: Annotated[Transform | None, GetInChildren(), Name("Hand")] = None
        weapons: Annotated[list[Weapon], GetInChildren()] = None
        config: Annotated[PlayerConfig | None, FindInAssets(), Path("Assets/Player.asset")] = None
        health: Annotated[int, Synced()] = 100

        @on_after_sync
        def validate(self):
            ...

Exactly one strategy marker (:class:`Get`, :class:`GetInChildren`,
:class:`GetInParent`, :class:`GetInSiblings`, :class:`FindInAssets`) is
allowed per field. :class:`Name`, :class:`Path` and :class:`Sync` refine it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeVar

from autoref.sync_mode import SyncMode
from autoref.strategies import Strategy

F = TypeVar("F", bound=Callable)

AFTER_SYNC_MARKER = "__autoref_after_sync__"


@dataclass(frozen=True)
class AutoReferenceAttribute:
    """Base class of every strategy marker."""

    strategy = Strategy.OWN

    @property
    def attribute_name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Get(AutoReferenceAttribute):
    """Look up components on the same node."""

    strategy = Strategy.OWN


@dataclass(frozen=True)
class GetInChildren(AutoReferenceAttribute):
    """Look up components in the node's subtree (depth-first, pre-order)."""

    include_self: bool = False
    strategy = Strategy.DESCENDANT


@dataclass(frozen=True)
class GetInParent(AutoReferenceAttribute):
    """Look up the first matching component walking up the parent chain."""

    include_self: bool = False
    strategy = Strategy.ANCESTOR


@dataclass(frozen=True)
class GetInSiblings(AutoReferenceAttribute):
    """Look up components on the other children of the node's parent."""

    strategy = Strategy.SIBLING


@dataclass(frozen=True)
class FindInAssets(AutoReferenceAttribute):
    """Load an object from the asset database by an explicit :class:`Path`."""

    strategy = Strategy.EXTERNAL


@dataclass(frozen=True)
class FilterAttribute:
    """Base class of the markers that refine a strategy."""

    @property
    def attribute_name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Name(FilterAttribute):
    """Only match candidates whose ``name`` equals ``value``."""

    value: str


@dataclass(frozen=True)
class Path(FilterAttribute):
    """Asset path used by :class:`FindInAssets`."""

    value: str


@dataclass(frozen=True)
class Sync(FilterAttribute):
    """Override the field's :class:`SyncMode`."""

    mode: SyncMode = SyncMode.DEFAULT


@dataclass(frozen=True)
class Synced:
    """Mark a plain field as part of the change-detected state."""

    @property
    def attribute_name(self) -> str:
        return type(self).__name__


def on_after_sync(func: F) -> F:
    """Mark a no-argument method to run after all fields of a component are synced."""
    setattr(func, AFTER_SYNC_MARKER, True)
    return func


def is_after_sync_callback(obj: object) -> bool:
    return callable(obj) and getattr(obj, AFTER_SYNC_MARKER, False) is True
