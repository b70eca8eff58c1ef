"""Attribute-driven auto-reference resolution for Unity scene graphs.

Component fields annotated with lookup strategies are filled from the scene
graph (own node, children, parents, siblings) or from an asset database, and
every sync reports what changed and what went wrong.
"""

from importlib.metadata import version

__version__ = version("autoref")

from autoref.assets import AssetDatabase, normalize_asset_path
from autoref.attributes import (
    FindInAssets,
    Get,
    GetInChildren,
    GetInParent,
    GetInSiblings,
    Name,
    Path,
    Sync,
    Synced,
    on_after_sync,
)
from autoref.config import SyncSettings
from autoref.engine import BatchResult, SyncSession
from autoref.errors import AssetNotFoundError, AssetTypeError, AutoReferenceError, ProjectError
from autoref.loader import ComponentRegistry, build_scene, default_registry, register_component
from autoref.metadata import FieldDescriptor, MetadataCache, TypeMetadata, build_type_metadata
from autoref.parser import UnityYAMLDocument, UnityYAMLObject
from autoref.project import Project, SceneKind, find_project_root
from autoref.reporting import collect_reports
from autoref.scene import Asset, Component, Node, Scene, UnknownComponent
from autoref.status import LogItem, ReportInfo, Severity, StatisticsInfo, SyncReport, SyncStatus
from autoref.strategies import Strategy
from autoref.sync_mode import SyncMode
from autoref.watcher import ObjectWatcher

__all__ = [
    "__version__",
    # Scene graph
    "Asset",
    "Component",
    "Node",
    "Scene",
    "UnknownComponent",
    # Annotations
    "FindInAssets",
    "Get",
    "GetInChildren",
    "GetInParent",
    "GetInSiblings",
    "Name",
    "Path",
    "Sync",
    "SyncMode",
    "Synced",
    "on_after_sync",
    # Metadata
    "FieldDescriptor",
    "MetadataCache",
    "Strategy",
    "TypeMetadata",
    "build_type_metadata",
    # Sync
    "BatchResult",
    "ObjectWatcher",
    "SyncSession",
    "SyncSettings",
    # Diagnostics
    "LogItem",
    "ReportInfo",
    "Severity",
    "StatisticsInfo",
    "SyncReport",
    "SyncStatus",
    "collect_reports",
    # Assets and projects
    "AssetDatabase",
    "ComponentRegistry",
    "Project",
    "SceneKind",
    "UnityYAMLDocument",
    "UnityYAMLObject",
    "build_scene",
    "default_registry",
    "find_project_root",
    "normalize_asset_path",
    "register_component",
    # Errors
    "AssetNotFoundError",
    "AssetTypeError",
    "AutoReferenceError",
    "ProjectError",
]
