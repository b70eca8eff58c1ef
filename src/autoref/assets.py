"""Asset database backing the ``FindInAssets`` strategy.

Objects are stored under normalised, forward-slash, project-relative paths
such as ``Assets/Prefabs/Enemy.prefab``. A stored object is either a prefab
root :class:`~autoref.scene.Node`, an :class:`~autoref.scene.Asset`, or any
other object (components included).
"""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath
from typing import Any, Iterator

from autoref.errors import AssetNotFoundError, AssetTypeError
from autoref.scene import Component, Node

__all__ = ["AssetDatabase", "AssetNotFoundError", "AssetTypeError", "normalize_asset_path"]


def normalize_asset_path(path: str) -> str:
    """Normalise separators and redundant segments of an asset path."""
    return str(PurePosixPath(PureWindowsPath(path).as_posix()))


class AssetDatabase:
    """In-memory map of asset paths to loaded objects."""

    def __init__(self) -> None:
        self._assets: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, path: str) -> bool:
        return normalize_asset_path(path) in self._assets

    def __iter__(self) -> Iterator[str]:
        return iter(self._assets)

    def register(self, path: str, obj: Any) -> None:
        """Store ``obj`` under ``path``, replacing anything already there."""
        self._assets[normalize_asset_path(path)] = obj

    def unregister(self, path: str) -> bool:
        """Remove the asset at ``path``. Returns False if nothing was stored."""
        return self._assets.pop(normalize_asset_path(path), None) is not None

    def load(self, path: str) -> Any | None:
        """Get the object stored at ``path``, or None."""
        return self._assets.get(normalize_asset_path(path))

    def paths(self) -> list[str]:
        return sorted(self._assets)

    def prefabs(self) -> list[tuple[str, Node]]:
        """Get (path, root node) pairs of all stored prefabs, sorted by path."""
        return [(p, obj) for p, obj in sorted(self._assets.items()) if isinstance(obj, Node)]

    def load_typed(self, path: str, target_type: type, many: bool = False) -> Any:
        """Load an object of ``target_type`` from ``path``.

        For a prefab, ``Node`` targets yield the prefab root and component
        targets yield the component(s) of that type on the root.

        Args:
            path: Asset path
            target_type: Type the caller expects
            many: Return a list of every matching component on a prefab root

        Returns:
            The matching object, or a list of them when ``many`` is set

        Raises:
            AssetNotFoundError: Nothing is stored at ``path``
            AssetTypeError: Nothing of ``target_type`` is stored at ``path``
        """
        if not path:
            raise AssetNotFoundError("Asset path is empty")

        obj = self.load(path)
        if obj is None:
            raise AssetNotFoundError(f"No asset found at '{normalize_asset_path(path)}'")

        if isinstance(obj, Node) and not (isinstance(target_type, type) and issubclass(target_type, Node)):
            components = obj.get_components(target_type)
            if not components:
                raise AssetTypeError(
                    f"Prefab '{normalize_asset_path(path)}' has no {target_type.__name__} component on its root"
                )
            return components if many else components[0]

        if not isinstance(obj, target_type):
            raise AssetTypeError(
                f"Asset at '{normalize_asset_path(path)}' is a {type(obj).__name__}, "
                f"expected {target_type.__name__}"
            )
        return [obj] if many else obj

    def iter_components(self) -> Iterator[Component]:
        """Iterate over every component of every stored prefab."""
        for _, root in self.prefabs():
            yield from root.iter_components()
