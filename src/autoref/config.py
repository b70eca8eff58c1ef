"""Sync preferences.

Defaults come from environment variables so that scripted runs can change
them without code changes:

- ``AUTOREF_CACHE_METADATA``: cache per-type metadata (default on)
- ``AUTOREF_SYNC_ON_SCENE_SAVE``: sync a scene when it is about to be saved (default on)
- ``AUTOREF_SYNC_ON_RELOAD``: sync open scenes after classes are reloaded (default off)
- ``AUTOREF_LOG_BUILD_MESSAGES``: log metadata diagnostics on every sync (default on)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable, keeping ``default`` for unknown values."""
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


@dataclass
class SyncSettings:
    """Preferences consumed by :class:`~autoref.engine.SyncSession`."""

    cache_metadata: bool = True
    sync_on_scene_save: bool = True
    sync_on_reload: bool = False
    log_build_messages: bool = True

    @classmethod
    def from_env(cls) -> SyncSettings:
        return cls(
            cache_metadata=env_flag("AUTOREF_CACHE_METADATA", True),
            sync_on_scene_save=env_flag("AUTOREF_SYNC_ON_SCENE_SAVE", True),
            sync_on_reload=env_flag("AUTOREF_SYNC_ON_RELOAD", False),
            log_build_messages=env_flag("AUTOREF_LOG_BUILD_MESSAGES", True),
        )
