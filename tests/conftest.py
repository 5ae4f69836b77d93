"""Shared fixtures for tab-grouper tests."""

import pytest

from tab_grouper.bus.relay import EventRelay
from tab_grouper.tabs.models import Tab
from tab_grouper.tabs.oracle import StaticTabOracle


def _tab(tab_id: int, title: str = "", opener_id=None) -> Tab:
    return Tab(
        id=tab_id,
        title=title or f"Tab {tab_id}",
        url=f"https://example.com/{tab_id}",
        favicon=f"https://example.com/{tab_id}.ico",
        opener_id=opener_id,
    )


@pytest.fixture
def make_tab():
    return _tab


@pytest.fixture
def four_tabs() -> list:
    return [
        _tab(101, "Attention Is All You Need"),
        _tab(102, "Discord"),
        _tab(103, "Slack"),
        _tab(104, "Transformer notes", opener_id=101),
    ]


@pytest.fixture
def relay() -> EventRelay:
    return EventRelay()


@pytest.fixture
def oracle(four_tabs, relay) -> StaticTabOracle:
    return StaticTabOracle(tabs=four_tabs, relay=relay)
