"""
Chat transports.

ChatTransport is the capability the live subscriber needs: connect, subscribe
to a channel name, iterate (event_name, data) frames, close. PusherTransport
implements it for Kick's public Pusher app over a websocket.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional, Tuple

import websockets

from linkick.core.config import settings
from linkick.core.logger import Logger

logger = Logger("PusherTransport")


class ChatTransport(ABC):
    """Base class for live chat transports."""

    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def subscribe(self, channel: str):
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[Tuple[str, Any]]:
        """Yield (event_name, data) until the connection ends."""
        pass

    @abstractmethod
    async def close(self):
        pass


class PusherTransport(ChatTransport):
    """Pusher protocol 7 client over `websockets`."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.pusher_url
        self._ws = None
        self.socket_id: Optional[str] = None

    async def connect(self):
        self._ws = await websockets.connect(self.url)
        logger.debug(f"Connected to {self.url}")

    async def subscribe(self, channel: str):
        await self._send("pusher:subscribe", {"auth": "", "channel": channel})
        logger.info(f"📡 Subscribed to {channel}")

    async def events(self) -> AsyncIterator[Tuple[str, Any]]:
        if self._ws is None:
            raise RuntimeError("transport is not connected")

        async for raw in self._ws:
            try:
                frame = json.loads(raw)
            except ValueError:
                logger.debug(f"Ignoring non-JSON frame: {str(raw)[:80]}")
                continue
            if not isinstance(frame, dict):
                continue

            event = frame.get("event") or ""
            if event == "pusher:ping":
                await self._send("pusher:pong", {})
                continue
            if event == "pusher:connection_established":
                self.socket_id = self._decode(frame.get("data")).get("socket_id")
                continue
            if event == "pusher:error":
                logger.warn(f"Pusher error: {frame.get('data')}")
                continue
            if event.startswith("pusher:") or event.startswith("pusher_internal:"):
                continue

            yield event, frame.get("data")

    async def close(self):
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()

    async def _send(self, event: str, data: dict):
        await self._ws.send(json.dumps({"event": event, "data": data}))

    @staticmethod
    def _decode(data) -> dict:
        # Pusher double-encodes data as a JSON string
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                return {}
        return data if isinstance(data, dict) else {}
