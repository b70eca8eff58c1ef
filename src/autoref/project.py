"""Unity project access: scenes, prefabs and build settings on disk.

Scenes (``*.unity``) are loaded into :class:`~autoref.scene.Scene` objects,
prefabs (``*.prefab``) and registered ``*.asset`` files into an
:class:`~autoref.assets.AssetDatabase` keyed by project-relative path.
Writing files back is left to the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from autoref.assets import AssetDatabase, normalize_asset_path
from autoref.errors import ProjectError
from autoref.loader import ComponentRegistry, build_scene, create_asset, default_registry
from autoref.parser import UnityYAMLDocument
from autoref.scene import Node, Scene

logger = logging.getLogger(__name__)

META_GUID_PATTERN = re.compile(r"^guid:\s*([a-f0-9]{32})\s*$", re.MULTILINE)

BUILD_SETTINGS_PATH = Path("ProjectSettings") / "EditorBuildSettings.asset"


class SceneKind(Enum):
    """Which scenes a batch sync covers."""

    OPEN = "open"
    PROJECT = "project"
    BUILD = "build"
    PREFABS = "prefabs"


def find_project_root(start_path: Path) -> Path | None:
    """Walk up from ``start_path`` to the first directory holding an ``Assets`` folder.

    Returns None when no such directory exists up to the filesystem root.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent
    for candidate in (current, *current.parents):
        if (candidate / "Assets").is_dir():
            return candidate
    return None


def build_script_index(project_root: Path) -> dict[str, str]:
    """Map script GUIDs to script class names using ``*.cs.meta`` files."""
    index: dict[str, str] = {}
    assets_dir = project_root / "Assets"
    if not assets_dir.is_dir():
        return index

    for meta_path in sorted(assets_dir.rglob("*.cs.meta")):
        try:
            content = meta_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        match = META_GUID_PATTERN.search(content)
        if match:
            index[match.group(1)] = meta_path.name[: -len(".cs.meta")]
    return index


def read_build_scenes(project_root: Path) -> list[str]:
    """Get the enabled scene paths listed in the project's build settings."""
    settings_path = project_root / BUILD_SETTINGS_PATH
    if not settings_path.is_file():
        return []

    doc = UnityYAMLDocument.load(settings_path)
    scenes = []
    for obj in doc:
        content = obj.get_content() or {}
        for entry in content.get("m_Scenes") or []:
            if isinstance(entry, dict) and entry.get("enabled") == 1 and entry.get("path"):
                scenes.append(normalize_asset_path(str(entry["path"])))
    return scenes


ProgressCallback = Callable[[int, int, str], None]


@dataclass
class Project:
    """A loaded Unity project.

    Attributes:
        root: Project root directory (parent of ``Assets``)
        scenes: Loaded scenes, sorted by path
        assets: Prefabs and registered assets by project-relative path
        load_errors: Files that could not be loaded, with the reason
    """

    root: Path
    scenes: list[Scene] = field(default_factory=list)
    assets: AssetDatabase = field(default_factory=AssetDatabase)
    load_errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(
        cls,
        root: str | Path,
        registry: ComponentRegistry | None = None,
        progress: ProgressCallback | None = None,
    ) -> Project:
        """Load every scene, prefab and registered asset under ``root/Assets``.

        Raises:
            ProjectError: ``root`` has no ``Assets`` directory
        """
        root = Path(root)
        assets_dir = root / "Assets"
        if not assets_dir.is_dir():
            raise ProjectError(f"Not a Unity project (no Assets folder): {root}")

        registry = registry if registry is not None else default_registry
        project = cls(root=root)
        script_names = build_script_index(root)
        build_scenes = set(read_build_scenes(root))

        files = sorted(
            p for p in assets_dir.rglob("*") if p.suffix in (".unity", ".prefab", ".asset") and p.is_file()
        )
        for index, file_path in enumerate(files):
            rel_path = file_path.relative_to(root).as_posix()
            if progress:
                progress(index, len(files), rel_path)
            try:
                doc = UnityYAMLDocument.load(file_path)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.warning("Could not load %s: %s", rel_path, e)
                project.load_errors[rel_path] = str(e)
                continue

            if file_path.suffix == ".asset":
                project._load_asset(doc, rel_path, registry, script_names)
                continue

            scene = build_scene(doc, registry, script_names, path=rel_path)
            if file_path.suffix == ".unity":
                scene.in_build = rel_path in build_scenes
                project.scenes.append(scene)
            elif len(scene.root_objects) == 1:
                project.assets.register(rel_path, scene.root_objects[0])
            elif scene.root_objects:
                # A prefab has a single root; keep the first one and report the rest.
                project.load_errors[rel_path] = f"Prefab has {len(scene.root_objects)} root objects"
                project.assets.register(rel_path, scene.root_objects[0])

        return project

    def _load_asset(
        self,
        doc: UnityYAMLDocument,
        rel_path: str,
        registry: ComponentRegistry,
        script_names: dict[str, str],
    ) -> None:
        for obj in doc:
            asset = create_asset(obj, registry, script_names)
            if asset is not None:
                self.assets.register(rel_path, asset)
                return

    def scene(self, path: str) -> Scene | None:
        path = normalize_asset_path(path)
        for scene in self.scenes:
            if scene.path == path:
                return scene
        return None

    def open_scene(self, path: str) -> Scene:
        scene = self.scene(path)
        if scene is None:
            raise ProjectError(f"No scene at '{path}'")
        scene.is_open = True
        return scene

    def close_scene(self, path: str) -> None:
        scene = self.scene(path)
        if scene is not None:
            scene.is_open = False

    def scenes_of(self, kind: SceneKind) -> list[Scene]:
        """Get the scenes a batch of ``kind`` covers."""
        if kind is SceneKind.OPEN:
            return [s for s in self.scenes if s.is_open]
        if kind is SceneKind.BUILD:
            return [s for s in self.scenes if s.in_build]
        if kind is SceneKind.PROJECT:
            return list(self.scenes)
        return []

    def prefab(self, path: str) -> Node | None:
        obj = self.assets.load(path)
        return obj if isinstance(obj, Node) else None
