"""Sync engine: resolves auto-reference fields of components.

:class:`SyncSession` owns the metadata cache and the in-flight guard, so
independent sessions never interfere. Every entry point degrades failures to
diagnostics; nothing raised while resolving a field or running a callback
escapes a batch.

Example:
    >>> session = SyncSession(assets=database)
    >>> result = session.sync_scene(scene)
    >>> print(result.summary())
    Auto-Reference sync completed successfully.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from autoref.assets import AssetDatabase
from autoref.config import SyncSettings
from autoref.errors import AutoReferenceError
from autoref.metadata import FieldDescriptor, MetadataCache, TypeMetadata
from autoref.project import SceneKind
from autoref.scene import Component, Node, Scene
from autoref.status import (
    LogItem,
    Severity,
    SyncReport,
    SyncStatus,
    format_status_summary,
    status_of,
)
from autoref.strategies import Strategy, find_candidates
from autoref.sync_mode import SyncAction, plan_sync
from autoref.watcher import ObjectWatcher

if TYPE_CHECKING:
    from autoref.project import Project

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

_STRATEGY_DOMAINS = {
    Strategy.OWN: "on its own node",
    Strategy.DESCENDANT: "in its children",
    Strategy.ANCESTOR: "in its parents",
    Strategy.SIBLING: "in its siblings",
    Strategy.EXTERNAL: "in assets",
}


@dataclass
class BatchResult:
    """Outcome of syncing one or more scenes or prefabs."""

    status: SyncStatus
    report: SyncReport
    modified: list[str] = field(default_factory=list)
    """Scenes or prefabs containing at least one modified component."""

    def summary(self) -> str:
        return format_status_summary(self.status, self.report.statistics)

    @property
    def has_errors(self) -> bool:
        return bool(self.status & SyncStatus.ERROR)


def _context(node: Node | None) -> str | None:
    if node is None:
        return None
    scene = node.scene
    if scene is not None and scene.path:
        return f"{scene.path}:{node.path}"
    return node.path


class SyncSession:
    """Syncs auto-references of components, nodes, scenes and prefabs.

    Args:
        settings: Sync preferences (defaults to :meth:`SyncSettings.from_env`)
        assets: Asset database used by ``FindInAssets`` fields
        cache: Metadata cache; a new one is created when omitted
    """

    def __init__(
        self,
        settings: SyncSettings | None = None,
        assets: AssetDatabase | None = None,
        cache: MetadataCache | None = None,
    ) -> None:
        self.settings = settings if settings is not None else SyncSettings.from_env()
        self.assets = assets
        self.cache = cache if cache is not None else MetadataCache(self.settings.cache_metadata)
        self.is_playing = False
        self._syncing: list[Component] = []

    @property
    def cache_count(self) -> int:
        return self.cache.count

    def clear_cache(self) -> int:
        """Discard all cached metadata and return the number of types discarded."""
        return self.cache.clear()

    def get_metadata(self, cls: type) -> TypeMetadata:
        return self.cache.get_or_build(cls)

    def has_sync_information(self, obj: Any) -> bool:
        """Whether a component (or component type) has anything to sync."""
        if obj is None:
            return False
        cls = obj if isinstance(obj, type) else type(obj)
        return issubclass(cls, Component) and self.get_metadata(cls).is_syncable

    def is_after_sync_validating(self, component: Component) -> bool:
        """Whether ``component`` is being synced right now.

        True while its fields are resolved and its after-sync callbacks run.
        """
        return any(c is component for c in self._syncing)

    def sync_component(self, component: Component | None, report: SyncReport | None = None) -> SyncStatus:
        """Sync all auto-reference fields of one component."""
        return self._sync_component(component, report if report is not None else SyncReport())

    def sync_node(self, node: Node, report: SyncReport | None = None) -> SyncStatus:
        """Sync every component attached to ``node`` (not its children)."""
        if self.is_playing:
            return SyncStatus.NONE
        return self._sync_node(node, report if report is not None else SyncReport())

    def sync_scene(self, scene: Scene, progress: ProgressCallback | None = None) -> BatchResult:
        """Sync every node of a loaded scene."""
        report = SyncReport()
        if self.is_playing:
            return BatchResult(SyncStatus.NONE, report)

        nodes = list(scene.iter_all())
        status = SyncStatus.NONE
        for index, node in enumerate(nodes):
            if progress:
                progress(index, len(nodes), node.path)
            status |= self._sync_node(node, report)

        modified = [scene.path] if status & SyncStatus.MODIFIED else []
        return self._finish(BatchResult(report.fold(status), report, modified))

    def sync_scenes(
        self,
        project: Project,
        kind: SceneKind = SceneKind.OPEN,
        progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Sync every scene of ``project`` selected by ``kind``."""
        report = SyncReport()
        if self.is_playing:
            return BatchResult(SyncStatus.NONE, report)

        if kind is SceneKind.PREFABS:
            return self.sync_prefabs(progress, assets=project.assets)

        scenes = project.scenes_of(kind)
        modified: list[str] = []
        with self._using_assets(self.assets if self.assets is not None else project.assets):
            for index, scene in enumerate(scenes):
                if progress:
                    progress(index, len(scenes), scene.path)
                status = self._sync_nodes(scene.iter_all(), report)
                report.fold(status)
                if status & SyncStatus.MODIFIED:
                    modified.append(scene.path)

        return self._finish(BatchResult(report.status, report, modified))

    def sync_prefabs(
        self,
        progress: ProgressCallback | None = None,
        assets: AssetDatabase | None = None,
    ) -> BatchResult:
        """Sync every component of every prefab in the asset database."""
        report = SyncReport()
        assets = assets if assets is not None else self.assets
        if self.is_playing or assets is None:
            return BatchResult(SyncStatus.NONE, report)

        with self._using_assets(assets):
            prefabs = assets.prefabs()
            modified: list[str] = []
            for index, (path, root) in enumerate(prefabs):
                if progress:
                    progress(index, len(prefabs), path)
                status = SyncStatus.NONE
                for component in list(root.iter_components()):
                    status |= self._sync_component(component, report)
                report.fold(status)
                if status & SyncStatus.MODIFIED:
                    modified.append(path)

        return self._finish(BatchResult(report.status, report, modified))

    def on_before_type_reload(self) -> None:
        """Forget everything derived from class definitions that may change."""
        self.cache.clear()
        self._syncing.clear()

    def on_after_type_reload(self, project: Project) -> BatchResult | None:
        if not self.settings.sync_on_reload:
            return None
        return self.sync_scenes(project, SceneKind.OPEN)

    def on_scene_saving(self, scene: Scene) -> BatchResult | None:
        if not self.settings.sync_on_scene_save:
            return None
        return self.sync_scene(scene)

    @contextmanager
    def _using_assets(self, assets: AssetDatabase | None) -> Iterator[None]:
        previous, self.assets = self.assets, assets
        try:
            yield
        finally:
            self.assets = previous

    def _finish(self, result: BatchResult) -> BatchResult:
        logger.info(result.summary())
        return result

    def _sync_nodes(self, nodes: Iterable[Node], report: SyncReport) -> SyncStatus:
        status = SyncStatus.NONE
        for node in list(nodes):
            status |= self._sync_node(node, report)
        return status

    def _sync_node(self, node: Node, report: SyncReport) -> SyncStatus:
        status = SyncStatus.NONE
        for component in list(node.components):
            status |= self._sync_component(component, report)
        report.fold(status)
        return status

    def _sync_component(self, component: Component | None, report: SyncReport) -> SyncStatus:
        if self.is_playing:
            return SyncStatus.UNSUPPORTED

        if component is None or self.is_after_sync_validating(component):
            return SyncStatus.SKIP

        cls = type(component)
        metadata = self.get_metadata(cls)
        if report.begin_type(cls, metadata) and self.settings.log_build_messages:
            for item in metadata.messages:
                _log_item(item)

        status = status_of(metadata.messages)
        if not metadata.is_syncable:
            return status | SyncStatus.SKIP

        self._syncing.append(component)
        try:
            if not metadata.has_mutable_fields:
                # Nothing to compare; callbacks alone never count as a modification.
                status |= self._run_callbacks(component, metadata, report)
                return status | SyncStatus.COMPLETE

            with ObjectWatcher(component, metadata.watched_fields) as watcher:
                for descriptor in metadata.fields:
                    status |= self._sync_field(component, descriptor, report)
                status |= self._run_callbacks(component, metadata, report)
        finally:
            self._syncing = [c for c in self._syncing if c is not component]

        if watcher.is_object_modified():
            component.set_dirty()
            status |= SyncStatus.MODIFIED

        return status | SyncStatus.COMPLETE

    def _sync_field(self, component: Component, descriptor: FieldDescriptor, report: SyncReport) -> SyncStatus:
        report.count_field()
        current = getattr(component, descriptor.name, None)
        action = plan_sync(descriptor.sync_mode, current, descriptor.is_sequence)
        if action is SyncAction.NOTHING:
            return SyncStatus.NONE

        node = component.node
        if node is None and descriptor.strategy is not Strategy.EXTERNAL:
            items = [_item(Severity.WARNING, component, descriptor, "Component is not attached to a node")]
        else:
            try:
                if action is SyncAction.VALIDATE:
                    items = self._validate(component, node, descriptor, current)
                else:
                    items = self._resolve(component, node, descriptor)
            except AutoReferenceError as e:
                items = [_item(Severity.ERROR, component, descriptor, str(e))]
            except Exception as e:
                logger.exception("Syncing %s.%s raised an exception", type(component).__qualname__, descriptor.name)
                items = [_item(Severity.ERROR, component, descriptor, f"Sync raised {type(e).__name__}: {e}")]

        for item in items:
            report.add(item)
            _log_item(item)
        return status_of(items)

    def _resolve(self, component: Component, node: Node | None, descriptor: FieldDescriptor) -> list[LogItem]:
        items = []
        candidates = find_candidates(node, descriptor, self.assets)  # type: ignore[arg-type]

        accepted = []
        for candidate in candidates:
            if isinstance(candidate, descriptor.target_type):
                accepted.append(candidate)
            else:
                items.append(
                    _item(
                        Severity.ERROR,
                        component,
                        descriptor,
                        f"Found {type(candidate).__name__}, expected {descriptor.target_type.__name__}",
                    )
                )

        if descriptor.is_sequence:
            setattr(component, descriptor.name, descriptor.container(accepted))
            return items

        if not accepted:
            if not items:
                items.append(_item(Severity.WARNING, component, descriptor, _not_found_message(descriptor)))
            return items

        setattr(component, descriptor.name, accepted[0])
        return items

    def _validate(
        self,
        component: Component,
        node: Node | None,
        descriptor: FieldDescriptor,
        value: Any,
    ) -> list[LogItem]:
        target = descriptor.target_type
        if value is None:
            return []
        if not descriptor.is_sequence:
            values = [value]
        elif isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            return [
                _item(
                    Severity.ERROR,
                    component,
                    descriptor,
                    f"Value of type {type(value).__name__} is not a sequence of {target.__name__}",
                )
            ]
        else:
            values = list(value)

        if not values:
            return []

        wrong = [v for v in values if v is not None and not isinstance(v, target)]
        if wrong:
            return [
                _item(
                    Severity.ERROR,
                    component,
                    descriptor,
                    f"Value of type {type(v).__name__} is not a {target.__name__}",
                )
                for v in wrong
            ]

        domain = find_candidates(node, descriptor, self.assets, many=True)  # type: ignore[arg-type]
        items = []
        for v in values:
            if v is None or any(v is d for d in domain):
                continue
            if descriptor.name_filter is not None and getattr(v, "name", None) != descriptor.name_filter:
                message = f"'{getattr(v, 'name', v)}' does not match Name '{descriptor.name_filter}'"
            else:
                message = f"{v!r} was not found {_STRATEGY_DOMAINS[descriptor.strategy]}"
            items.append(_item(Severity.WARNING, component, descriptor, message))
        return items

    def _run_callbacks(self, component: Component, metadata: TypeMetadata, report: SyncReport) -> SyncStatus:
        status = SyncStatus.NONE
        for name in metadata.callbacks:
            report.count_callback()
            try:
                getattr(component, name)()
            except Exception as e:
                logger.exception("Sync method %s.%s raised an exception", metadata.type.__qualname__, name)
                report.add(
                    LogItem(
                        Severity.ERROR,
                        metadata.type,
                        name,
                        "on_after_sync",
                        f"Sync method raised {type(e).__name__}: {e}",
                        _context(component.node),
                    )
                )
                status |= SyncStatus.ERROR
        return status


def _item(severity: Severity, component: Component, descriptor: FieldDescriptor, message: str) -> LogItem:
    return LogItem(
        severity,
        type(component),
        descriptor.name,
        descriptor.attribute_name,
        message,
        _context(component.node),
    )


def _not_found_message(descriptor: FieldDescriptor) -> str:
    what = descriptor.target_type.__name__
    if descriptor.name_filter is not None:
        what = f"{what} named '{descriptor.name_filter}'"
    return f"No {what} found {_STRATEGY_DOMAINS[descriptor.strategy]}"


def _log_item(item: LogItem) -> None:
    if item.is_error:
        logger.error(str(item))
    else:
        logger.warning(str(item))
