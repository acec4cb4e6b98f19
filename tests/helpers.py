"""Builders and fakes shared by the test modules."""

import asyncio
import json
from datetime import datetime
from typing import List, Optional

import httpx

from linkick.services.live import CHAT_MESSAGE_EVENT
from linkick.services.pusher import ChatTransport


def make_message(content: str, username: Optional[str] = "viewer", created_at=None) -> dict:
    """Chat message shaped like Kick history items and live events."""
    msg = {"id": "m-" + str(abs(hash(content)) % 10_000), "content": content, "type": "message"}
    if username is not None:
        msg["sender"] = {"id": 1, "username": username, "slug": username.lower()}
    if created_at is not None:
        msg["created_at"] = created_at.isoformat() if isinstance(created_at, datetime) else created_at
    return msg


def chat_event(content: str, username: str = "viewer") -> tuple:
    """Live frame as yielded by a transport: data is a JSON string."""
    return CHAT_MESSAGE_EVENT, json.dumps(make_message(content, username))


async def wait_for(predicate, timeout: float = 2.0):
    """Poll until predicate() is true, yielding to the event loop."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


class FakeTransport(ChatTransport):
    """Yields the given frames, then stays open (or ends if `hold` is False)."""

    def __init__(self, frames=None, hold: bool = True, fail_connect: bool = False):
        self.frames = list(frames or [])
        self.hold = hold
        self.fail_connect = fail_connect
        self.connected = False
        self.subscribed: List[str] = []
        self.closed = False

    async def connect(self):
        if self.fail_connect:
            raise ConnectionError("connect refused")
        self.connected = True

    async def subscribe(self, channel: str):
        self.subscribed.append(channel)

    async def events(self):
        for frame in self.frames:
            yield frame
        if self.hold:
            await asyncio.Event().wait()

    async def close(self):
        self.closed = True


class TransportFactory:
    """Hands out prepared FakeTransports in order; records what it built."""

    def __init__(self):
        self.queue: List[FakeTransport] = []
        self.built: List[FakeTransport] = []

    def add(self, transport: FakeTransport) -> FakeTransport:
        self.queue.append(transport)
        return transport

    def __call__(self) -> FakeTransport:
        transport = self.queue.pop(0) if self.queue else FakeTransport()
        self.built.append(transport)
        return transport


def json_transport(routes: dict) -> httpx.MockTransport:
    """MockTransport answering by URL path: value is (status, body) or an exception."""
    def handler(request: httpx.Request) -> httpx.Response:
        result = routes.get(request.url.path)
        if result is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(result, Exception):
            raise result
        status, body = result
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)
    return httpx.MockTransport(handler)
