from unittest import mock

import pytest

from exgrid.selection import SelectionSlice, default_identity
from exgrid.slice import GridScopeError


class Owner:
    disposed = False


class Row:
    def __init__(self, id, name=""):
        self.id = id
        self.name = name


def make_slice(**kwargs) -> SelectionSlice:
    return SelectionSlice(owner=Owner(), **kwargs)


def test_default_identity():
    assert default_identity({"id": 3}) == 3
    assert default_identity(Row(4)) == 4


def test_default_identity_without_id(caplog):
    row = {"name": "x"}
    assert default_identity(row) == default_identity(row)
    assert default_identity(row) != default_identity({"name": "x"})
    assert "has no id" in caplog.text


class TestSelectionSlice:
    def test_same_identity_selected_once(self):
        slc = make_slice()
        slc.select_item({"id": 1, "name": "a"})
        slc.select_item({"id": 1, "name": "b"})
        assert slc.selection_count == 1
        assert slc.selected_items == [{"id": 1, "name": "a"}]

    def test_membership_by_identity(self):
        slc = make_slice()
        slc.select_item(Row(1))
        assert slc.is_selected(Row(1))
        assert not slc.is_selected(Row(2))
        slc.deselect_item(Row(1))
        assert not slc.has_selection

    def test_toggle(self):
        slc = make_slice()
        slc.toggle_item({"id": 1})
        slc.toggle_item({"id": 2})
        slc.toggle_item({"id": 1})
        assert slc.selected_ids == [2]

    def test_select_all_replaces(self):
        slc = make_slice()
        slc.select_item({"id": 9})
        slc.select_all([{"id": 1}, {"id": 2}, {"id": 1}])
        assert slc.selected_ids == [1, 2]

    def test_clear(self):
        callback = mock.MagicMock()
        slc = make_slice(on_changed=[callback])
        slc.select_all([{"id": 1}, {"id": 2}])
        slc.clear_selection()
        assert slc.selected_items == []
        callback.assert_called_with(slc, [])
        assert callback.call_count == 2

    def test_no_change_no_notification(self):
        callback = mock.MagicMock()
        slc = make_slice(on_changed=[callback])
        slc.deselect_item({"id": 1})
        slc.select_item({"id": 1})
        slc.select_item({"id": 1})
        assert callback.call_count == 1

    def test_custom_identity(self):
        slc = make_slice(identity=lambda row: row["code"].lower())
        slc.select_item({"code": "AB"})
        assert slc.is_selected({"code": "ab"})

    def test_scope(self):
        with pytest.raises(GridScopeError):
            SelectionSlice().select_item({"id": 1})
