"""Sync-mode policy: when a field is overwritten, validated or left alone."""

from __future__ import annotations

from enum import Enum


class SyncMode(Enum):
    """How a field's existing value is treated on sync."""

    DEFAULT = "default"
    """``VALIDATE_OR_GET_IF_EMPTY`` for single-value fields and
    ``ALWAYS_GET_AND_VALIDATE`` for sequence fields."""

    VALIDATE_ONLY = "validate_only"
    """Validate the value against all constraints but never retrieve anything."""

    GET_IF_EMPTY = "get_if_empty"
    """Retrieve only when the value is empty (None, or zero length for sequences)."""

    VALIDATE_OR_GET_IF_EMPTY = "validate_or_get_if_empty"
    """Retrieve when empty, otherwise validate the existing value."""

    ALWAYS_GET_AND_VALIDATE = "always_get_and_validate"
    """Always retrieve and overwrite; values set by hand are not respected."""


class SyncAction(Enum):
    """What the engine does with one field."""

    NOTHING = "nothing"
    VALIDATE = "validate"
    RESOLVE = "resolve"


def resolve_mode(mode: SyncMode, is_sequence: bool) -> SyncMode:
    """Replace ``DEFAULT`` with the concrete mode for the field's arity."""
    if mode is not SyncMode.DEFAULT:
        return mode
    if is_sequence:
        return SyncMode.ALWAYS_GET_AND_VALIDATE
    return SyncMode.VALIDATE_OR_GET_IF_EMPTY


def is_empty(value: object, is_sequence: bool) -> bool:
    """Whether ``value`` counts as empty for a field of the given arity."""
    if value is None:
        return True
    if is_sequence:
        try:
            return len(value) == 0  # type: ignore[arg-type]
        except TypeError:
            return False
    return False


def plan_sync(mode: SyncMode, value: object, is_sequence: bool) -> SyncAction:
    """Decide what to do with a field holding ``value``.

    Args:
        mode: The field's sync mode (``DEFAULT`` is resolved here)
        value: The field's current value
        is_sequence: Whether the field holds a sequence of references

    Returns:
        The action the engine must take
    """
    mode = resolve_mode(mode, is_sequence)

    if mode is SyncMode.ALWAYS_GET_AND_VALIDATE:
        return SyncAction.RESOLVE

    if mode is SyncMode.VALIDATE_ONLY:
        return SyncAction.VALIDATE

    empty = is_empty(value, is_sequence)
    if mode is SyncMode.GET_IF_EMPTY:
        return SyncAction.RESOLVE if empty else SyncAction.NOTHING

    # VALIDATE_OR_GET_IF_EMPTY
    return SyncAction.RESOLVE if empty else SyncAction.VALIDATE
