"""Tests for Unity YAML parser."""

import pytest

from autoref.parser import (
    CLASS_IDS,
    UnityYAMLDocument,
    UnityYAMLObject,
    parse_file_reference,
    parse_unity_yaml,
)

from unity_files import ENEMY_PREFAB, PANEL_GUID, PANEL_SCENE, PREFAB_INSTANCE_SCENE


class TestUnityYAMLDocument:
    """Tests for UnityYAMLDocument class."""

    def test_parse_document_headers(self):
        """Test that document headers are parsed correctly."""
        doc = UnityYAMLDocument.parse(ENEMY_PREFAB)

        assert len(doc) == 3
        game_obj = doc.get_by_file_id(1000)
        assert game_obj is not None
        assert game_obj.class_id == 1
        assert game_obj.class_name == "GameObject"

        transform = doc.get_by_file_id(4000)
        assert transform.class_id == 4
        assert transform.class_name == "Transform"

    def test_get_by_class_id(self):
        """Test filtering objects by class ID."""
        doc = UnityYAMLDocument.parse(PANEL_SCENE)

        assert len(doc.get_by_class_id(1)) == 3
        assert len(doc.get_by_class_id(114)) == 3
        assert doc.get_by_class_id(999) == []

    def test_iteration_keeps_file_order(self):
        doc = UnityYAMLDocument.parse(ENEMY_PREFAB)

        assert [obj.file_id for obj in doc] == [1000, 4000, 5400]
        assert all(isinstance(obj, UnityYAMLObject) for obj in doc)

    def test_stripped_documents(self):
        doc = UnityYAMLDocument.parse(PREFAB_INSTANCE_SCENE)

        assert doc.get_by_file_id(800).stripped is True
        assert doc.get_by_file_id(400).stripped is False

    def test_load_from_disk(self, tmp_path):
        path = tmp_path / "Enemy.prefab"
        path.write_text(ENEMY_PREFAB, encoding="utf-8")

        doc = UnityYAMLDocument.load(path)

        assert doc.source_path == path
        assert len(doc.objects) == 3

    def test_empty_content(self):
        assert len(UnityYAMLDocument.parse("")) == 0


class TestDocumentContent:
    """Test conversion of document bodies to Python values."""

    def test_get_content(self):
        doc = UnityYAMLDocument.parse(ENEMY_PREFAB)

        content = doc.get_by_file_id(1000).get_content()

        assert content["m_Name"] == "Enemy"
        assert content["m_ObjectHideFlags"] == 0
        assert content["m_Component"] == [{"component": {"fileID": 4000}}, {"component": {"fileID": 5400}}]

    def test_flow_mappings_and_scripts(self):
        doc = UnityYAMLDocument.parse(PANEL_SCENE)

        script = doc.get_by_file_id(500).get_content()["m_Script"]

        assert script == {"fileID": 11500000, "guid": PANEL_GUID, "type": 3}

    def test_empty_sequence(self):
        doc = UnityYAMLDocument.parse(ENEMY_PREFAB)

        assert doc.get_by_file_id(4000).get_content()["m_Children"] == []

    def test_root_key_is_class_name(self):
        doc = UnityYAMLDocument.parse(PANEL_SCENE)

        camera = doc.get_by_file_id(502)

        assert camera.root_key == "Camera"
        assert camera.class_name == "Camera"
        assert camera.get_content()["field of view"] == 60

    def test_non_mapping_document(self):
        content = "--- !u!1 &1\n- a\n- b\n"

        with pytest.raises(ValueError, match="not a mapping"):
            parse_unity_yaml(content)

    def test_leading_zero_strings_are_kept(self):
        content = "--- !u!114 &1\nMonoBehaviour:\n  code: 007\n  count: 7\n  ratio: 0.5\n  empty: ~\n"

        data = UnityYAMLDocument.parse(content).get_by_file_id(1).get_content()

        assert data["code"] == "007"
        assert data["count"] == 7
        assert data["ratio"] == 0.5
        assert data["empty"] is None


class TestFileReferences:
    def test_parse_file_reference(self):
        assert parse_file_reference({"fileID": 400}) == 400
        assert parse_file_reference({"fileID": 0}) == 0
        assert parse_file_reference({"guid": "abc"}) == 0
        assert parse_file_reference(None) == 0
        assert parse_file_reference({"fileID": "bad"}) == 0

    def test_class_ids(self):
        assert CLASS_IDS[1] == "GameObject"
        assert CLASS_IDS[1001] == "PrefabInstance"
