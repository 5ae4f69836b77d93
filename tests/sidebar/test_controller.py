import asyncio

import pytest

from tab_grouper.bus.events import GroupingReady, PipelineFailed, StatusChanged, TabActivated
from tab_grouper.categorize.errors import DecodeError, TransportError
from tab_grouper.categorize.pipeline import CategorizationPipeline
from tab_grouper.sidebar.controller import READY_LABEL, SUCCESS_LABEL, SidebarController
from tab_grouper.sidebar.tree import UNSORTED, TreeState


class FakeClient:
    def __init__(self, reply=None, error=None, gate: asyncio.Event | None = None):
        self.reply = reply
        self.error = error
        self.gate = gate
        self.calls = 0

    async def categorize(self, snapshot, provider):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply


def _controller(oracle, relay, client) -> SidebarController:
    return SidebarController(
        oracle=oracle,
        relay=relay,
        pipeline=CategorizationPipeline(oracle, client),
        default_provider="groq",
    )


@pytest.mark.asyncio
async def test_successful_grouping_replaces_tree(oracle, relay):
    controller = _controller(oracle, relay, FakeClient(reply={"Research": [0, 3], "Chat": [1, 2]}))
    await controller.load_current_tabs()

    assert await controller.request_grouping()
    assert controller.busy
    assert not controller.control_enabled

    relay.drain(controller.handle_event)

    assert not controller.busy
    assert controller.status_text == SUCCESS_LABEL
    assert controller.reconciler.state is TreeState.CATEGORIZED
    assert controller.reconciler.tree.layout() == [("Research", [101, 104]), ("Chat", [102, 103])]


@pytest.mark.asyncio
async def test_status_updates_flow_through_relay(oracle, relay):
    controller = _controller(oracle, relay, FakeClient(reply={"All": [0, 1, 2, 3]}))
    await controller.request_grouping()
    seen = []

    relay.drain(lambda event: (seen.append(event), controller.handle_event(event)))

    statuses = [event.text for event in seen if isinstance(event, StatusChanged)]
    assert statuses[-1] == "Creating tab groups..."
    assert isinstance(seen[-1], GroupingReady)


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [TransportError("Server request failed with status 500"), DecodeError("bad json")])
async def test_failure_keeps_tree_and_reenables_control(oracle, relay, error):
    controller = _controller(oracle, relay, FakeClient(error=error))
    await controller.load_current_tabs()
    before = controller.reconciler.tree.layout()

    await controller.request_grouping()
    relay.drain(controller.handle_event)

    assert controller.control_enabled
    assert controller.last_error == str(error)
    assert controller.status_text == f"Error: {error}"
    assert controller.reconciler.tree.layout() == before
    assert controller.reconciler.state is TreeState.UNSORTED


@pytest.mark.asyncio
async def test_invalid_partition_surfaces_as_error(oracle, relay):
    controller = _controller(oracle, relay, FakeClient(reply={"Only": [0, 1]}))
    await controller.load_current_tabs()

    await controller.request_grouping()
    relay.drain(controller.handle_event)

    assert "missing indices [2, 3]" in controller.status_text
    assert controller.reconciler.tree.layout() == [(UNSORTED, [101, 102, 103, 104])]


@pytest.mark.asyncio
async def test_unknown_provider_is_reported_without_calling_client(oracle, relay):
    client = FakeClient(reply={})
    controller = _controller(oracle, relay, client)

    await controller.request_grouping("bard")
    relay.drain(controller.handle_event)

    assert client.calls == 0
    assert "Unknown provider 'bard'" in controller.status_text


@pytest.mark.asyncio
async def test_second_request_while_in_flight_is_refused(oracle, relay):
    gate = asyncio.Event()
    client = FakeClient(reply={"All": [0, 1, 2, 3]}, gate=gate)
    controller = _controller(oracle, relay, client)
    await controller.load_current_tabs()

    first = asyncio.create_task(controller.request_grouping())
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert controller.busy
    assert await controller.request_grouping() is False

    gate.set()
    assert await first is True
    assert client.calls == 1


@pytest.mark.asyncio
async def test_events_during_flight_apply_immediately_then_are_superseded(oracle, relay, make_tab):
    gate = asyncio.Event()
    controller = _controller(oracle, relay, FakeClient(reply={"A": [0, 1], "B": [2, 3]}, gate=gate))
    await controller.load_current_tabs()

    pending = asyncio.create_task(controller.request_grouping())
    await asyncio.sleep(0)
    await oracle.open_tab(make_tab(500, opener_id=101))
    controller.move_tab(103, UNSORTED, 0)
    relay.drain(controller.handle_event)

    assert controller.reconciler.tree.layout() == [(UNSORTED, [103, 101, 102, 104, 500])]

    gate.set()
    await pending
    relay.drain(controller.handle_event)

    assert controller.reconciler.tree.layout() == [("A", [101, 102]), ("B", [103, 104])]


@pytest.mark.asyncio
async def test_row_actions_go_through_the_oracle(oracle, relay):
    controller = _controller(oracle, relay, FakeClient(reply={}))
    await controller.load_current_tabs()

    await controller.activate_tab(102)
    await controller.activate_tab(999)
    relay.drain(controller.handle_event)
    assert controller.reconciler.tree.active_tab_ids == [102]

    await controller.close_tab(103)
    assert 103 not in controller.reconciler.tree.layout()[0][1]
    assert [tab.id for tab in await oracle.query_tabs()] == [101, 102, 104]
    relay.drain(controller.handle_event)

    assert controller.toggle_group(UNSORTED) is True


def test_unknown_event_type_is_rejected(oracle, relay):
    controller = _controller(oracle, relay, FakeClient())

    with pytest.raises(TypeError):
        controller.handle_event(object())


def test_pipeline_events_update_control_state(oracle, relay):
    controller = _controller(oracle, relay, FakeClient())
    assert controller.status_text == READY_LABEL

    controller.handle_event(StatusChanged(text="Sending request to local server..."))
    assert controller.status_text == "Sending request to local server..."

    controller.handle_event(PipelineFailed(error="boom"))
    assert controller.status_text == "Error: boom"

    controller.handle_event(TabActivated(tab_id=12345))
