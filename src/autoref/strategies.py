"""Reference resolution strategies.

Each :class:`Strategy` variant has exactly one handler. A handler receives the
node owning the component, the field descriptor and the asset database, and
returns candidate values in the strategy's traversal order. The order is
deterministic: re-running a handler on an unchanged graph yields the same list.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from autoref.assets import AssetDatabase, AssetNotFoundError

if TYPE_CHECKING:
    from autoref.metadata import FieldDescriptor
    from autoref.scene import Node


class Strategy(Enum):
    """Search domain of an auto-reference field."""

    OWN = "own"
    DESCENDANT = "descendant"
    ANCESTOR = "ancestor"
    SIBLING = "sibling"
    EXTERNAL = "external"

    @property
    def collects_many(self) -> bool:
        """Whether a sequence field gathers every match or only the first."""
        return self is not Strategy.ANCESTOR

    @property
    def accepts_name(self) -> bool:
        return self is not Strategy.EXTERNAL

    @property
    def accepts_path(self) -> bool:
        return self is Strategy.EXTERNAL

    @property
    def requires_path(self) -> bool:
        return self is Strategy.EXTERNAL


Handler = Callable[["Node", "FieldDescriptor", "AssetDatabase | None", bool], list[Any]]


def _matches(candidate: Any, descriptor: FieldDescriptor) -> bool:
    if not isinstance(candidate, descriptor.target_type):
        return False
    if descriptor.name_filter is not None:
        return getattr(candidate, "name", None) == descriptor.name_filter
    return True


def _collect(candidates: Iterable[Any], descriptor: FieldDescriptor, many: bool) -> list[Any]:
    found = []
    for candidate in candidates:
        if _matches(candidate, descriptor):
            found.append(candidate)
            if not many:
                break
    return found


def _components_of(nodes: Iterable[Node]) -> Iterator[Any]:
    for node in nodes:
        yield from node.components


def find_own(node: Node, descriptor: FieldDescriptor, assets: AssetDatabase | None, many: bool) -> list[Any]:
    return _collect(node.components, descriptor, many)


def find_in_descendants(
    node: Node, descriptor: FieldDescriptor, assets: AssetDatabase | None, many: bool
) -> list[Any]:
    nodes: Iterable[Node] = node.iter_descendants()
    if descriptor.include_self:
        nodes = _prepend(node, nodes)
    return _collect(_components_of(nodes), descriptor, many)


def find_in_ancestors(
    node: Node, descriptor: FieldDescriptor, assets: AssetDatabase | None, many: bool
) -> list[Any]:
    nodes: Iterable[Node] = node.iter_ancestors()
    if descriptor.include_self:
        nodes = _prepend(node, nodes)
    return _collect(_components_of(nodes), descriptor, many)


def find_in_siblings(
    node: Node, descriptor: FieldDescriptor, assets: AssetDatabase | None, many: bool
) -> list[Any]:
    return _collect(_components_of(node.siblings), descriptor, many)


def find_in_assets(
    node: Node, descriptor: FieldDescriptor, assets: AssetDatabase | None, many: bool
) -> list[Any]:
    """Load the field's value from the asset database.

    Raises:
        AssetNotFoundError: No asset database, or nothing at the path
        AssetTypeError: Nothing of the target type at the path
    """
    if assets is None:
        raise AssetNotFoundError(f"No asset database available to load '{descriptor.path}'")
    found = assets.load_typed(descriptor.path or "", descriptor.target_type, many=many)
    return found if isinstance(found, list) else [found]


def _prepend(first: Node, rest: Iterable[Node]) -> Iterator[Node]:
    yield first
    yield from rest


HANDLERS: dict[Strategy, Handler] = {
    Strategy.OWN: find_own,
    Strategy.DESCENDANT: find_in_descendants,
    Strategy.ANCESTOR: find_in_ancestors,
    Strategy.SIBLING: find_in_siblings,
    Strategy.EXTERNAL: find_in_assets,
}


def find_candidates(
    node: Node,
    descriptor: FieldDescriptor,
    assets: AssetDatabase | None = None,
    many: bool | None = None,
) -> list[Any]:
    """Run the descriptor's strategy and return the candidates.

    Args:
        node: Node owning the component being synced
        descriptor: The field to resolve
        assets: Asset database for external lookups
        many: Collect every match instead of the first one. Defaults to what
            the field's arity and strategy call for.

    Returns:
        Candidate values in traversal order
    """
    if many is None:
        many = descriptor.is_sequence and descriptor.strategy.collects_many
    return HANDLERS[descriptor.strategy](node, descriptor, assets, many)
