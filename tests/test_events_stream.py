"""
SSE framing of the push channel.
"""
import json

import pytest

from cafeteria.api.events import format_sse, sse_stream
from cafeteria.core.broadcast import MemoryBroadcaster


class FakeRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


def test_format_sse_frame():
    frame = format_sse("order_status_updated", {"id": 3, "status": "completed"})
    assert frame == 'event: order_status_updated\ndata: {"id": 3, "status": "completed"}\n\n'


@pytest.mark.asyncio
async def test_stream_forwards_messages_until_client_leaves():
    hub = MemoryBroadcaster()
    request = FakeRequest()
    stream = sse_stream(request, hub)

    assert await stream.__anext__() == ": connected\n\n"
    assert (await stream.__anext__()).startswith("retry: ")
    assert hub.subscriber_count == 1

    await hub.publish("new_order", {"id": 1, "customer_name": "Alice"})
    frame = await stream.__anext__()
    event_line, data_line, _, _ = frame.split("\n")
    assert event_line == "event: new_order"
    assert json.loads(data_line.removeprefix("data: ")) == {"id": 1, "customer_name": "Alice"}

    request.disconnected = True
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert hub.subscriber_count == 0
