"""Build scene graphs from Unity YAML documents.

GameObjects become :class:`~autoref.scene.Node` objects linked through their
Transform/RectTransform ``m_Father``/``m_Children`` references. Each
non-transform component document becomes an instance of the Python class
registered for its Unity type name or script GUID, or an
:class:`~autoref.scene.UnknownComponent` when nothing is registered.

Example:
    >>> registry = ComponentRegistry()
    >>> @registry.component("PlayerController")
    ... class PlayerController(Component):
    ...     body: Annotated[Rigidbody | None, Get()] = None
    >>> scene = build_scene(UnityYAMLDocument.load("Main.unity"), registry)
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from autoref.parser import TRANSFORM_CLASS_IDS, UnityYAMLDocument, UnityYAMLObject, parse_file_reference
from autoref.scene import Asset, Component, Node, Scene, UnknownComponent

T = TypeVar("T", bound=type)

MONO_BEHAVIOUR_CLASS_ID = 114
PREFAB_INSTANCE_CLASS_ID = 1001
GAME_OBJECT_CLASS_ID = 1


class ComponentRegistry:
    """Maps Unity type names and script GUIDs to Python classes."""

    def __init__(self) -> None:
        self._by_name: dict[str, type] = {}
        self._by_guid: dict[str, type] = {}

    def __len__(self) -> int:
        return len(self.types())

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def register(self, cls: T, name: str | None = None, guid: str | None = None) -> T:
        """Register ``cls`` under ``name`` (default: its class name) and ``guid``."""
        if not (issubclass(cls, Component) or issubclass(cls, Asset)):
            raise TypeError(f"{cls.__name__} is neither a Component nor an Asset")
        self._by_name[name or cls.__name__] = cls
        if guid:
            self._by_guid[guid.lower()] = cls
        return cls

    def component(self, name: str | None = None, guid: str | None = None) -> Callable[[T], T]:
        """Class decorator form of :meth:`register`."""

        def decorator(cls: T) -> T:
            return self.register(cls, name=name, guid=guid)

        return decorator

    def resolve(self, type_name: str | None, guid: str | None = None) -> type | None:
        """Get the class registered for ``guid`` or ``type_name``."""
        if guid and guid.lower() in self._by_guid:
            return self._by_guid[guid.lower()]
        if type_name:
            return self._by_name.get(type_name)
        return None

    def types(self) -> list[type]:
        """All registered classes, in registration order, without duplicates."""
        seen: dict[type, None] = {}
        for cls in list(self._by_name.values()) + list(self._by_guid.values()):
            seen.setdefault(cls, None)
        return list(seen)

    def clear(self) -> None:
        self._by_name.clear()
        self._by_guid.clear()


default_registry = ComponentRegistry()


def register_component(
    cls: type | None = None, *, name: str | None = None, guid: str | None = None
) -> Any:
    """Register a class with :data:`default_registry`.

    Usable bare (``@register_component``) or with arguments
    (``@register_component(guid="...")``).
    """
    if cls is not None:
        return default_registry.register(cls)
    return default_registry.component(name=name, guid=guid)


def _content(obj: UnityYAMLObject | None) -> dict[str, Any]:
    if obj is None:
        return {}
    return obj.get_content() or {}


def _script_guid(content: dict[str, Any]) -> str | None:
    script = content.get("m_Script")
    if isinstance(script, dict) and script.get("guid"):
        return str(script["guid"])
    return None


def _type_name(obj: UnityYAMLObject, script_names: dict[str, str]) -> tuple[str, str | None]:
    content = _content(obj)
    if obj.class_id == MONO_BEHAVIOUR_CLASS_ID:
        guid = _script_guid(content)
        if guid and guid in script_names:
            return script_names[guid], guid
        return obj.class_name, guid
    return obj.class_name, None


def create_component(
    obj: UnityYAMLObject,
    registry: ComponentRegistry,
    script_names: dict[str, str] | None = None,
) -> Component:
    """Instantiate the component described by ``obj``."""
    type_name, guid = _type_name(obj, script_names or {})
    cls = registry.resolve(type_name, guid)
    content = _content(obj)
    if cls is None or not issubclass(cls, Component):
        return UnknownComponent(type_name, content)
    component = cls()
    component.data = content
    return component


def create_asset(
    obj: UnityYAMLObject,
    registry: ComponentRegistry,
    script_names: dict[str, str] | None = None,
) -> Asset | None:
    """Instantiate a standalone asset (e.g. a ScriptableObject) from ``obj``."""
    type_name, guid = _type_name(obj, script_names or {})
    cls = registry.resolve(type_name, guid)
    if cls is None or not issubclass(cls, Asset):
        return None
    return cls(str(_content(obj).get("m_Name") or ""))


def build_scene(
    doc: UnityYAMLDocument,
    registry: ComponentRegistry | None = None,
    script_names: dict[str, str] | None = None,
    path: str = "",
) -> Scene:
    """Build a :class:`Scene` from a Unity YAML document.

    Args:
        doc: Parsed scene or prefab document
        registry: Component classes to instantiate (default: :data:`default_registry`)
        script_names: Script GUID to script class name map, for MonoBehaviours
        path: Path recorded on the scene

    Returns:
        The scene with one root per top-level GameObject or PrefabInstance
    """
    registry = registry if registry is not None else default_registry
    script_names = script_names or {}
    if not path and doc.source_path is not None:
        path = doc.source_path.as_posix()

    nodes: list[Node] = []
    transform_to_node: dict[int, Node] = {}
    parent_of: dict[int, int] = {}
    children_of: dict[int, list[int]] = {}

    go_to_transform: dict[int, int] = {}
    for obj in doc:
        if obj.class_id in TRANSFORM_CLASS_IDS and not obj.stripped:
            content = _content(obj)
            go_id = parse_file_reference(content.get("m_GameObject"))
            if go_id:
                go_to_transform[go_id] = obj.file_id
            father = parse_file_reference(content.get("m_Father"))
            if father:
                parent_of[obj.file_id] = father
            children_of[obj.file_id] = [
                parse_file_reference(child) for child in content.get("m_Children") or []
            ]

    for obj in doc:
        if obj.class_id == GAME_OBJECT_CLASS_ID and not obj.stripped:
            content = _content(obj)
            node = Node(str(content.get("m_Name") or ""))
            transform_id = go_to_transform.get(obj.file_id, 0)
            if transform_id:
                transform_to_node[transform_id] = node

            for entry in content.get("m_Component") or []:
                comp_id = parse_file_reference(entry.get("component")) if isinstance(entry, dict) else 0
                if not comp_id or comp_id == transform_id:
                    continue
                comp_obj = doc.get_by_file_id(comp_id)
                if comp_obj is not None and comp_obj.class_id not in TRANSFORM_CLASS_IDS:
                    node.add_component(create_component(comp_obj, registry, script_names))
            nodes.append(node)

        elif obj.class_id == PREFAB_INSTANCE_CLASS_ID:
            node = _build_prefab_instance(doc, obj, transform_to_node, parent_of)
            nodes.append(node)

    # Children listed by their parent come first, in the parent's order.
    for parent_id, child_ids in children_of.items():
        parent = transform_to_node.get(parent_id)
        if parent is None:
            continue
        for child_id in child_ids:
            child = transform_to_node.get(child_id)
            if child is not None and child.parent is None and child is not parent:
                parent.add_child(child)

    for child_id, parent_id in parent_of.items():
        child = transform_to_node.get(child_id)
        parent = transform_to_node.get(parent_id)
        if child is not None and parent is not None and child.parent is None and child is not parent:
            if child not in list(parent.iter_ancestors()):
                parent.add_child(child)

    scene = Scene(path)
    for node in nodes:
        if node.parent is None:
            scene.add_root(node)
    return scene


def _build_prefab_instance(
    doc: UnityYAMLDocument,
    obj: UnityYAMLObject,
    transform_to_node: dict[int, Node],
    parent_of: dict[int, int],
) -> Node:
    content = _content(obj)
    modification = content.get("m_Modification") or {}

    name = ""
    for mod in modification.get("m_Modifications") or []:
        if isinstance(mod, dict) and mod.get("propertyPath") == "m_Name":
            name = str(mod.get("value", ""))
            break
    node = Node(name or f"PrefabInstance_{obj.file_id}")

    # The root stripped transform of this instance stands in for its transform.
    for candidate in doc:
        if candidate.stripped and candidate.class_id in TRANSFORM_CLASS_IDS:
            if parse_file_reference(_content(candidate).get("m_PrefabInstance")) == obj.file_id:
                transform_to_node[candidate.file_id] = node
                parent_id = parse_file_reference(modification.get("m_TransformParent"))
                if parent_id:
                    parent_of[candidate.file_id] = parent_id
                break

    return node
