"""Tests for the scene graph model."""

import pytest

from autoref.scene import Component, Node, Scene, UnknownComponent

from components import Button, Image, Label


@pytest.fixture
def scene():
    """Canvas/{Header/Title, Body, Body} plus a second root."""
    scene = Scene("Assets/Main.unity")
    canvas = scene.add_root(Node("Canvas", components=[Image()]))
    header = canvas.add_child(Node("Header"))
    header.add_child(Node("Title", components=[Label()]))
    canvas.add_child(Node("Body", components=[Button()]))
    canvas.add_child(Node("Body", components=[Button(), Label()]))
    scene.add_root(Node("Camera"))
    return scene


class TestNode:
    """Test node structure and lookups."""

    def test_path(self, scene):
        title = scene.find("Canvas/Header/Title")

        assert title is not None
        assert title.path == "Canvas/Header/Title"
        assert title.root is scene.root_objects[0]
        assert title.scene is scene

    def test_find_with_index(self, scene):
        canvas = scene.root_objects[0]

        second = canvas.find("Body[1]")

        assert second is canvas.children[2]
        assert canvas.find("Body") is canvas.children[1]
        assert canvas.find("Body[2]") is None
        assert canvas.find("Missing") is None

    def test_iter_descendants_pre_order(self, scene):
        canvas = scene.root_objects[0]

        names = [n.path for n in canvas.iter_descendants()]

        assert names == ["Canvas/Header", "Canvas/Header/Title", "Canvas/Body", "Canvas/Body"]

    def test_iter_ancestors(self, scene):
        title = scene.find("Canvas/Header/Title")

        assert [n.name for n in title.iter_ancestors()] == ["Header", "Canvas"]

    def test_siblings_exclude_self(self, scene):
        header = scene.find("Canvas/Header")

        assert [n.name for n in header.siblings] == ["Body", "Body"]

    def test_root_siblings_are_other_roots(self, scene):
        camera = scene.root_objects[1]

        assert camera.siblings == [scene.root_objects[0]]

    def test_detached_root_has_no_siblings(self):
        assert Node("Alone").siblings == []

    def test_get_component_by_type(self, scene):
        second_body = scene.find("Canvas/Body[1]")

        assert isinstance(second_body.get_component(Label), Label)
        assert second_body.get_component(Image) is None
        assert len(second_body.get_components(Component)) == 2
        assert second_body.get_components() == second_body.components

    def test_add_component_sets_owner(self):
        node = Node("Player")
        image = node.add_component(Image())

        assert image.node is node
        assert image.name == "Player"

    def test_add_component_moves_between_nodes(self):
        first, second = Node("A"), Node("B")
        image = first.add_component(Image())

        second.add_component(image)

        assert first.components == []
        assert image.node is second

    def test_add_component_rejects_other_objects(self):
        with pytest.raises(TypeError):
            Node("A").add_component("not a component")

    def test_reparent(self):
        a, b = Node("A"), Node("B")
        child = a.add_child(Node("Child"))

        b.add_child(child)

        assert a.children == []
        assert child.parent is b
        assert child.path == "B/Child"


class TestComponent:
    """Test component naming and dirty state."""

    def test_detached_name_is_class_name(self):
        assert Image().name == "Image"

    def test_dirty_flag(self):
        image = Image()
        image.set_dirty()
        assert image.is_dirty

        image.clear_dirty()
        assert not image.is_dirty

    def test_unknown_component(self):
        component = UnknownComponent("Camera", {"m_Enabled": 1})

        assert component.type_name == "Camera"
        assert component.data == {"m_Enabled": 1}


class TestScene:
    """Test scene-level iteration and dirty tracking."""

    def test_iter_all(self, scene):
        assert len(list(scene.iter_all())) == 6

    def test_iter_components(self, scene):
        assert len(list(scene.iter_components())) == 5

    def test_dirty_components(self, scene):
        assert not scene.is_dirty

        label = scene.find("Canvas/Header/Title").get_component(Label)
        label.set_dirty()

        assert scene.is_dirty
        assert scene.dirty_components() == [label]

    def test_find_root_only(self, scene):
        assert scene.find("Camera") is scene.root_objects[1]
        assert scene.find("") is None
