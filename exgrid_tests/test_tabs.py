from unittest import mock

import pytest

from exgrid.tabs import TabConfig, TabOwnership, TabStrip


@pytest.fixture
def tabs():
    return [
        TabConfig(id="all", name="All"),
        TabConfig(id="paris", name="Paris", column_id="city"),
        TabConfig(id=3, name="Berlin", icon="flag", column_id="city"),
    ]


def test_component_owned(tabs):
    callback = mock.MagicMock()
    strip = TabStrip(tabs, on_change=[callback])
    assert strip.ownership == TabOwnership.COMPONENT
    assert strip.active_tab == tabs[0]

    strip.activate(2)

    assert strip.active_index == 2
    assert strip.is_selected(2)
    assert not strip.is_selected(0)
    callback.assert_called_once_with(2, tabs[2])
    with pytest.raises(ValueError):
        strip.set_value(1)


def test_caller_owned(tabs):
    callback = mock.MagicMock()
    strip = TabStrip(
        tabs, ownership="caller", on_change=[callback], active_index=1
    )

    strip.activate(2)

    callback.assert_called_once_with(2, tabs[2])
    assert strip.active_index == 1

    strip.set_value(2)
    assert strip.active_tab == tabs[2]


def test_index_out_of_range(tabs):
    with pytest.raises(IndexError):
        TabStrip(tabs, active_index=3)
    strip = TabStrip(tabs)
    with pytest.raises(IndexError):
        strip.activate(-1)
    assert strip.active_index == 0


def test_no_tabs():
    strip = TabStrip([])
    assert strip.active_tab is None
    with pytest.raises(IndexError):
        strip.activate(0)
