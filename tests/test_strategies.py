"""Tests for reference resolution strategies."""

import pytest

from autoref.assets import AssetDatabase, AssetNotFoundError
from autoref.metadata import FieldDescriptor
from autoref.scene import Node, Scene
from autoref.strategies import HANDLERS, Strategy, find_candidates

from components import Button, Canvas, GameSettings, Label


def _descriptor(strategy, target=Button, **kwargs):
    return FieldDescriptor(name="field", strategy=strategy, attribute_name="Test", target_type=target, **kwargs)


@pytest.fixture
def tree():
    """Root/{Menu/{OK, Extra}, OK} with a Button on every node but Root."""
    root = Node("Root", components=[Canvas()])
    menu = root.add_child(Node("Menu", components=[Button()]))
    menu.add_child(Node("OK", components=[Button()]))
    menu.add_child(Node("Extra", components=[Button(), Label()]))
    root.add_child(Node("OK", components=[Button()]))
    return root


class TestHandlers:
    def test_one_handler_per_strategy(self):
        assert set(HANDLERS) == set(Strategy)


class TestOwn:
    def test_components_on_same_node(self, tree):
        extra = tree.find("Menu/Extra")

        found = find_candidates(extra, _descriptor(Strategy.OWN, Label))

        assert found == [extra.components[1]]

    def test_no_match(self, tree):
        assert find_candidates(tree, _descriptor(Strategy.OWN)) == []


class TestDescendant:
    """Test depth-first pre-order lookups."""

    def test_first_match_is_pre_order(self, tree):
        found = find_candidates(tree, _descriptor(Strategy.DESCENDANT))

        assert found == [tree.find("Menu").components[0]]

    def test_name_filter_skips_non_matching_at_any_depth(self, tree):
        """Test that the deep OK comes before the shallow OK in pre-order."""
        found = find_candidates(tree, _descriptor(Strategy.DESCENDANT, name_filter="OK"))

        assert found == [tree.find("Menu/OK").components[0]]

    def test_sequence_collects_all_in_order(self, tree):
        found = find_candidates(tree, _descriptor(Strategy.DESCENDANT, is_sequence=True))

        assert [b.node.path for b in found] == ["Root/Menu", "Root/Menu/OK", "Root/Menu/Extra", "Root/OK"]

    def test_excludes_self_by_default(self, tree):
        menu = tree.find("Menu")

        found = find_candidates(menu, _descriptor(Strategy.DESCENDANT, is_sequence=True))

        assert [b.node.name for b in found] == ["OK", "Extra"]

    def test_include_self(self, tree):
        menu = tree.find("Menu")

        found = find_candidates(menu, _descriptor(Strategy.DESCENDANT, include_self=True))

        assert found == [menu.components[0]]


class TestAncestor:
    """Test parent-chain lookups."""

    def test_nearest_ancestor_wins(self, tree):
        deep = tree.find("Menu/OK")

        found = find_candidates(deep, _descriptor(Strategy.ANCESTOR))

        assert found == [tree.find("Menu").components[0]]

    def test_sequence_field_gets_one_match(self, tree):
        deep = tree.find("Menu/OK")

        found = find_candidates(deep, _descriptor(Strategy.ANCESTOR, is_sequence=True))

        assert len(found) == 1

    def test_excludes_self_by_default(self, tree):
        menu = tree.find("Menu")

        assert find_candidates(menu, _descriptor(Strategy.ANCESTOR)) == []
        assert find_candidates(menu, _descriptor(Strategy.ANCESTOR, include_self=True)) == [menu.components[0]]

    def test_reaches_root(self, tree):
        deep = tree.find("Menu/Extra")

        assert find_candidates(deep, _descriptor(Strategy.ANCESTOR, Canvas)) == tree.components


class TestSibling:
    """Test lookups among the other children of the parent."""

    def test_never_returns_own_components(self, tree):
        menu_ok = tree.find("Menu/OK")

        found = find_candidates(menu_ok, _descriptor(Strategy.SIBLING, is_sequence=True))

        assert found == [tree.find("Menu/Extra").components[0]]

    def test_sibling_order(self):
        row = Node("Row")
        a = row.add_child(Node("A", components=[Button()]))
        b = row.add_child(Node("B", components=[Button()]))
        c = row.add_child(Node("C", components=[Button()]))

        found = find_candidates(c, _descriptor(Strategy.SIBLING, is_sequence=True))
        first = find_candidates(c, _descriptor(Strategy.SIBLING))

        assert found == [a.components[0], b.components[0]]
        assert first == [a.components[0]]

    def test_name_filter(self, tree):
        menu = tree.find("Menu")

        found = find_candidates(menu, _descriptor(Strategy.SIBLING, name_filter="OK"))

        assert found == [tree.find("OK").components[0]]

    def test_root_nodes_of_a_scene(self):
        scene = Scene("Main", roots=[Node("A", components=[Button()]), Node("B", components=[Button()])])

        found = find_candidates(scene.root_objects[1], _descriptor(Strategy.SIBLING))

        assert found == scene.root_objects[0].components


class TestExternal:
    """Test asset database lookups."""

    def test_loads_by_path(self):
        assets = AssetDatabase()
        settings = GameSettings("Game")
        assets.register("Assets/Game.asset", settings)

        found = find_candidates(Node("A"), _descriptor(Strategy.EXTERNAL, GameSettings, path="Assets/Game.asset"), assets)

        assert found == [settings]

    def test_no_database(self):
        with pytest.raises(AssetNotFoundError):
            find_candidates(Node("A"), _descriptor(Strategy.EXTERNAL, GameSettings, path="Assets/Game.asset"))


class TestDeterminism:
    def test_repeated_lookups_agree(self, tree):
        descriptor = _descriptor(Strategy.DESCENDANT, is_sequence=True)

        first = find_candidates(tree, descriptor)
        for _ in range(3):
            assert find_candidates(tree, descriptor) == first
