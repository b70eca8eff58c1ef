"""Exceptions raised by autoref."""

from __future__ import annotations


class AutoReferenceError(Exception):
    """Base class of all autoref errors."""


class AssetNotFoundError(AutoReferenceError, LookupError):
    """No asset is stored at the requested path."""


class AssetTypeError(AutoReferenceError, TypeError):
    """The asset at a path holds nothing of the requested type."""


class ProjectError(AutoReferenceError):
    """A directory could not be loaded as a Unity project."""
