import asyncio

import pytest

from tab_grouper.bus.events import StatusChanged, TabActivated, TabCreated, TabRemoved, TabUpdated
from tab_grouper.bus.relay import EventRelay


def test_drain_preserves_publish_order(make_tab):
    relay = EventRelay()
    events = [
        TabCreated(tab=make_tab(1)),
        TabCreated(tab=make_tab(2)),
        TabUpdated(tab_id=1, title="loaded"),
        TabActivated(tab_id=2),
        TabActivated(tab_id=1),
        TabRemoved(tab_id=1),
    ]
    for event in events:
        relay.publish(event)
    seen = []

    assert relay.drain(seen.append) == len(events)
    assert seen == events
    assert relay.pending == 0


def test_failing_handler_does_not_stop_delivery():
    relay = EventRelay()
    relay.publish(TabActivated(tab_id=1))
    relay.publish(TabActivated(tab_id=2))
    seen = []

    def handler(event):
        if event.tab_id == 1:
            raise RuntimeError("boom")
        seen.append(event.tab_id)

    assert relay.drain(handler) == 2
    assert seen == [2]
    assert relay.delivered == 2


def test_event_keys_identify_the_tab(make_tab):
    assert TabCreated(tab=make_tab(5), opener=3).key == 5
    assert TabCreated(tab=make_tab(5), opener=make_tab(3)).opener_id == 3
    assert TabRemoved(tab_id=9).key == 9
    assert StatusChanged(text="x").key is None


@pytest.mark.asyncio
async def test_run_consumes_until_stopped():
    relay = EventRelay()
    seen = []

    def handler(event):
        seen.append(event)
        if isinstance(event, TabRemoved):
            relay.stop()

    task = asyncio.create_task(relay.run(handler))
    relay.publish(TabActivated(tab_id=1))
    relay.publish(TabRemoved(tab_id=1))
    await asyncio.wait_for(task, timeout=5)

    assert seen == [TabActivated(tab_id=1), TabRemoved(tab_id=1)]
