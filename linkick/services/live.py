"""
Live Subscriber

One subscription per session. The pump task owns the transport and pushes
chat-message payloads into a bounded queue; a single consumer task drains the
queue in order and calls on_event. Unsubscribing cancels both tasks, so once
unsubscribe() returns no further on_event call happens for that handle.
"""

import asyncio
from typing import Callable, List, Optional

from linkick.core.config import settings
from linkick.core.logger import Logger
from linkick.services.pusher import ChatTransport, PusherTransport

logger = Logger("LiveSubscriber")

CHAT_MESSAGE_EVENT = "App\\Events\\ChatMessageEvent"


def channel_name(room_id: str) -> str:
    return f"chatrooms.{room_id}.v2"


class Subscription:
    """Handle returned by LiveSubscriber.subscribe."""

    def __init__(self, room_id: str, on_event: Callable, queue_size: int):
        self.room_id = str(room_id)
        self.channel = channel_name(self.room_id)
        self.on_event = on_event
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False
        self.received = 0
        self.delivered = 0
        self.transport: Optional[ChatTransport] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def active(self) -> bool:
        return not self.closed


class LiveSubscriber:
    def __init__(
        self,
        transport_factory: Optional[Callable[[], ChatTransport]] = None,
        queue_size: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
    ):
        self.transport_factory = transport_factory or PusherTransport
        self.queue_size = queue_size or settings.LIVE_QUEUE_SIZE
        self.reconnect_delay = settings.LIVE_RECONNECT_DELAY if reconnect_delay is None else reconnect_delay

    async def subscribe(self, room_id: str, on_event: Callable) -> Subscription:
        sub = Subscription(room_id, on_event, self.queue_size)
        sub._tasks = [
            asyncio.create_task(self._pump(sub), name=f"live-pump-{sub.channel}"),
            asyncio.create_task(self._drain(sub), name=f"live-drain-{sub.channel}"),
        ]
        logger.info(f"🟢 Live subscription opened for {sub.channel}")
        return sub

    async def unsubscribe(self, sub: Optional[Subscription]):
        if sub is None or sub.closed:
            return
        sub.closed = True

        for task in sub._tasks:
            task.cancel()
        for task in sub._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warn(f"Live task for {sub.channel} ended with error: {e}")
        sub._tasks = []

        # The pump closes its transport on cancel; this covers a cancel that
        # landed before the pump task started running.
        if sub.transport is not None:
            await self._close_transport(sub)
        logger.info(f"🔴 Live subscription closed for {sub.channel} ({sub.delivered} events delivered)")

    async def _pump(self, sub: Subscription):
        while not sub.closed:
            transport = self.transport_factory()
            sub.transport = transport
            try:
                await transport.connect()
                await transport.subscribe(sub.channel)
                async for event, data in transport.events():
                    if event != CHAT_MESSAGE_EVENT:
                        continue
                    sub.received += 1
                    await sub.queue.put(data)
                logger.warn(f"Live connection for {sub.channel} closed by server")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warn(f"Live connection for {sub.channel} failed: {e}")
            finally:
                await self._close_transport(sub)

            if not sub.closed:
                logger.info(f"Reconnecting {sub.channel} in {self.reconnect_delay}s")
                await asyncio.sleep(self.reconnect_delay)

    async def _drain(self, sub: Subscription):
        while not sub.closed:
            payload = await sub.queue.get()
            if sub.closed:
                break
            try:
                sub.on_event(payload)
                sub.delivered += 1
            except Exception as e:
                logger.error(f"Live event handler failed on {sub.channel}: {e}", e)
            finally:
                sub.queue.task_done()

    async def _close_transport(self, sub: Subscription):
        transport, sub.transport = sub.transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            logger.debug(f"Error closing transport for {sub.channel}: {e}")
