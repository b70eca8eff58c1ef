"""Tests for the sync-mode policy."""

import pytest

from autoref.sync_mode import SyncAction, SyncMode, is_empty, plan_sync, resolve_mode

from components import Image


class TestResolveMode:
    """Test resolution of the DEFAULT mode."""

    def test_default_singular(self):
        assert resolve_mode(SyncMode.DEFAULT, is_sequence=False) is SyncMode.VALIDATE_OR_GET_IF_EMPTY

    def test_default_sequence(self):
        assert resolve_mode(SyncMode.DEFAULT, is_sequence=True) is SyncMode.ALWAYS_GET_AND_VALIDATE

    def test_explicit_modes_unchanged(self):
        for mode in SyncMode:
            if mode is not SyncMode.DEFAULT:
                assert resolve_mode(mode, is_sequence=True) is mode
                assert resolve_mode(mode, is_sequence=False) is mode


class TestIsEmpty:
    """Test emptiness for both field arities."""

    def test_none_is_empty(self):
        assert is_empty(None, is_sequence=False)
        assert is_empty(None, is_sequence=True)

    def test_zero_length_sequence_is_empty(self):
        assert is_empty([], is_sequence=True)
        assert is_empty((), is_sequence=True)

    def test_values_are_not_empty(self):
        assert not is_empty(Image(), is_sequence=False)
        assert not is_empty([Image()], is_sequence=True)

    def test_empty_list_in_singular_field_is_a_value(self):
        assert not is_empty([], is_sequence=False)


class TestPlanSync:
    """Test the action chosen per mode and current value."""

    @pytest.mark.parametrize(
        "mode, value, expected",
        [
            (SyncMode.VALIDATE_ONLY, None, SyncAction.VALIDATE),
            (SyncMode.VALIDATE_ONLY, "set", SyncAction.VALIDATE),
            (SyncMode.GET_IF_EMPTY, None, SyncAction.RESOLVE),
            (SyncMode.GET_IF_EMPTY, "set", SyncAction.NOTHING),
            (SyncMode.VALIDATE_OR_GET_IF_EMPTY, None, SyncAction.RESOLVE),
            (SyncMode.VALIDATE_OR_GET_IF_EMPTY, "set", SyncAction.VALIDATE),
            (SyncMode.ALWAYS_GET_AND_VALIDATE, None, SyncAction.RESOLVE),
            (SyncMode.ALWAYS_GET_AND_VALIDATE, "set", SyncAction.RESOLVE),
            (SyncMode.DEFAULT, None, SyncAction.RESOLVE),
            (SyncMode.DEFAULT, "set", SyncAction.VALIDATE),
        ],
    )
    def test_singular(self, mode, value, expected):
        current = Image() if value == "set" else None
        assert plan_sync(mode, current, is_sequence=False) is expected

    def test_default_sequence_always_resolves(self):
        assert plan_sync(SyncMode.DEFAULT, [], is_sequence=True) is SyncAction.RESOLVE
        assert plan_sync(SyncMode.DEFAULT, [Image()], is_sequence=True) is SyncAction.RESOLVE

    def test_get_if_empty_sequence(self):
        assert plan_sync(SyncMode.GET_IF_EMPTY, [], is_sequence=True) is SyncAction.RESOLVE
        assert plan_sync(SyncMode.GET_IF_EMPTY, [Image()], is_sequence=True) is SyncAction.NOTHING
