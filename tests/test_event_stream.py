from __future__ import annotations

import asyncio
import json

from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, EventStream


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.sent: list[str] = []

    async def send_text(self, text: str) -> None:
        if self.broken:
            raise ConnectionError("gone")
        self.sent.append(text)


def test_notify_without_loop_keeps_recent_events():
    stream = EventStream()

    stream.notify("Sale added successfully!", sale_id="s1")
    stream.notify("Failed to add sale: boom", NOTIFY_ERROR)

    recent = stream.recent(10)
    assert [e.message for e in recent] == ["Sale added successfully!", "Failed to add sale: boom"]
    assert recent[0].data == {"sale_id": "s1"}
    assert recent[1].type == NOTIFY_ERROR
    assert recent[0].event_id < recent[1].event_id
    assert stream.recent(1)[0].message == "Failed to add sale: boom"


def test_dispatcher_broadcasts_and_drops_broken_clients():
    async def _run():
        stream = EventStream()
        stream.install(asyncio.get_running_loop())
        await stream.start_dispatcher()
        good, bad = FakeWebSocket(), FakeWebSocket(broken=True)
        await stream.add_client(good)
        await stream.add_client(bad)

        stream.notify("WhatsApp reminder sent to Ravi.", sale_id="s1")
        for _ in range(50):
            if good.sent and stream.client_count() == 1:
                break
            await asyncio.sleep(0.01)

        await stream.stop_dispatcher()
        return stream, good

    stream, good = asyncio.run(_run())

    payload = json.loads(good.sent[0])
    assert payload["message"] == "WhatsApp reminder sent to Ravi."
    assert payload["type"] == "success"
    assert payload["data"] == {"sale_id": "s1"}
    assert stream.client_count() == 1
