"""Scene graph model.

A :class:`Scene` holds an ordered list of root :class:`Node` objects. Each
node owns an ordered list of :class:`Component` instances and an ordered list
of child nodes. Components declare auto-reference fields that the sync engine
resolves against this graph.

Example:
    >>> scene = Scene("Main")
    >>> root = scene.add_root(Node("Canvas"))
    >>> button = root.add_child(Node("Button"))
    >>> button.path
    'Canvas/Button'
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, TypeVar

T = TypeVar("T")


def _split_step(step: str) -> tuple[str, int]:
    name, bracket, rest = step.partition("[")
    if bracket and rest.endswith("]") and rest[:-1].isdigit():
        return name, int(rest[:-1])
    return step, 0


def _walk(candidates: list[Node], path: str) -> Node | None:
    step, _, rest = path.partition("/")
    name, index = _split_step(step)
    matches = [node for node in candidates if node.name == name]
    if index >= len(matches):
        return None
    return _walk(matches[index].children, rest) if rest else matches[index]


class Component:
    """Base class for anything attached to a :class:`Node`.

    Subclasses declare auto-reference fields with ``typing.Annotated``.
    """

    def __init__(self) -> None:
        self.node: Node | None = None
        self.is_dirty = False
        self.data: dict[str, Any] = {}

    @property
    def name(self) -> str:
        """The owning node's name, or the class name when detached."""
        if self.node is None:
            return type(self).__name__
        return self.node.name

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def set_dirty(self) -> None:
        self.is_dirty = True

    def clear_dirty(self) -> None:
        self.is_dirty = False

    def __repr__(self) -> str:
        return f"{self.type_name}(node={self.name!r})"


class UnknownComponent(Component):
    """A component whose type could not be mapped to a Python class."""

    def __init__(self, type_name: str, data: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._type_name = type_name
        self.data = data or {}

    @property
    def type_name(self) -> str:
        return self._type_name


class Asset:
    """Base class for non-graph objects stored in an asset database."""

    def __init__(self, name: str = "") -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name or type(self).__name__

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Node:
    """A position in the scene graph.

    Attributes:
        name: The name of this node
        parent: Parent node (None for root nodes)
        children: Ordered list of child nodes
        components: Ordered list of components attached to this node
    """

    def __init__(
        self,
        name: str,
        components: Iterable[Component] = (),
        children: Iterable[Node] = (),
    ) -> None:
        self.name = name
        self.parent: Node | None = None
        self.children: list[Node] = []
        self.components: list[Component] = []
        self._scene: Scene | None = None
        for component in components:
            self.add_component(component)
        for child in children:
            self.add_child(child)

    def __repr__(self) -> str:
        return f"Node({self.path!r})"

    def add_child(self, child: Node) -> Node:
        """Attach ``child`` as the last child of this node and return it."""
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        child._scene = None
        self.children.append(child)
        return child

    def add_component(self, component: T) -> T:
        """Attach ``component`` to this node and return it."""
        if not isinstance(component, Component):
            raise TypeError(f"Expected a Component, got {type(component).__name__}")
        if component.node is not None and component.node is not self:
            component.node.components.remove(component)
        component.node = self
        self.components.append(component)
        return component

    def find(self, path: str) -> Node | None:
        """Find a descendant by a relative path like ``"Panel/Button[1]"``.

        ``[i]`` selects the i-th of several same-named nodes. An empty path
        returns this node.
        """
        return _walk(self.children, path) if path else self

    def get_component(self, component_type: type[T], index: int = 0) -> T | None:
        """Get a component by type.

        Args:
            component_type: Component class (subclasses match too)
            index: Which match to return when several components share the type

        Returns:
            The component, or None if not found
        """
        matches = self.get_components(component_type)
        return matches[index] if index < len(matches) else None

    def get_components(self, component_type: type | None = None) -> list[Any]:
        """Get all components, optionally filtered by type."""
        if component_type is None:
            return list(self.components)
        return [c for c in self.components if isinstance(c, component_type)]

    @property
    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def scene(self) -> Scene | None:
        """The scene owning this node's root, if any."""
        return self.root._scene

    @property
    def path(self) -> str:
        """Slash-separated names from the root down to this node."""
        if self.parent is None:
            return self.name
        return f"{self.parent.path}/{self.name}"

    @property
    def siblings(self) -> list[Node]:
        """Other nodes sharing this node's parent, in child order.

        Root nodes are siblings of the other roots of their scene.
        """
        if self.parent is not None:
            peers = self.parent.children
        elif self._scene is not None:
            peers = self._scene.root_objects
        else:
            peers = []
        return [p for p in peers if p is not self]

    def iter_ancestors(self) -> Iterator[Node]:
        """Iterate over parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator[Node]:
        """Depth-first, pre-order walk below this node."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_components(self) -> Iterator[Component]:
        """Iterate over the components of this node and all its descendants."""
        yield from self.components
        for node in self.iter_descendants():
            yield from node.components


class Scene:
    """An ordered collection of root nodes, e.g. one scene or prefab file.

    Attributes:
        path: Identifier of the scene (usually its project-relative file path)
        root_objects: Root nodes in order
        is_open: Whether the scene is currently open for editing
        in_build: Whether the scene is designated for builds
    """

    def __init__(
        self,
        path: str = "",
        roots: Iterable[Node] = (),
        is_open: bool = False,
        in_build: bool = False,
    ) -> None:
        self.path = path
        self.root_objects: list[Node] = []
        self.is_open = is_open
        self.in_build = in_build
        for root in roots:
            self.add_root(root)

    def __repr__(self) -> str:
        return f"Scene({self.path!r}, roots={len(self.root_objects)})"

    def add_root(self, node: Node) -> Node:
        if node.parent is not None:
            node.parent.children.remove(node)
            node.parent = None
        node._scene = self
        self.root_objects.append(node)
        return node

    def find(self, path: str) -> Node | None:
        """Find a node by its full path, e.g. ``"Canvas/Panel/Button"``."""
        return _walk(self.root_objects, path) if path else None

    def iter_all(self) -> Iterator[Node]:
        """Every node of the scene in pre-order."""
        for node in self.root_objects:
            yield node
            yield from node.iter_descendants()

    def iter_components(self) -> Iterator[Component]:
        for node in self.iter_all():
            yield from node.components

    @property
    def is_dirty(self) -> bool:
        return any(c.is_dirty for c in self.iter_components())

    def dirty_components(self) -> list[Component]:
        return [c for c in self.iter_components() if c.is_dirty]
