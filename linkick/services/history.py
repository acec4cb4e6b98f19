"""
History Backfill

Fetches one page of recent chat messages for a room and replays the ones
inside the recency window, oldest first, through the ingest path. Best effort:
failures are logged and never reach the caller.
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional

import httpx

from linkick.core.config import settings
from linkick.core.errors import BackfillUnavailable
from linkick.core.http import http_client
from linkick.core.logger import Logger
from linkick.core.timezone import parse_timestamp, utc_now

logger = Logger("HistoryBackfill")


def extract_messages(data) -> list:
    """Message list from `{"data": {"messages": [...]}}` or `{"data": [...]}`."""
    if not isinstance(data, dict):
        raise BackfillUnavailable("history payload is not an object")
    body = data.get("data")
    if isinstance(body, dict):
        body = body.get("messages")
    if body is None:
        return []
    if not isinstance(body, list):
        raise BackfillUnavailable("history payload has no message list")
    return body


def select_recent(messages: list, since: datetime) -> List[dict]:
    """Messages created at or after `since`, reordered oldest first.

    The upstream page is newest first. Items without a readable created_at
    are skipped.
    """
    recent = []
    for msg in messages:
        if not isinstance(msg, dict):
            continue
        created_at = parse_timestamp(msg.get("created_at"))
        if created_at is None or created_at < since:
            continue
        recent.append(msg)
    recent.reverse()
    return recent


class HistoryBackfill:
    def __init__(
        self,
        history_url: Optional[str] = None,
        window_minutes: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.history_url = history_url or settings.KICK_HISTORY_URL
        if window_minutes is None:
            window_minutes = settings.HISTORY_WINDOW_MINUTES
        self.window = timedelta(minutes=window_minutes)
        self._transport = transport

    async def fetch_recent(self, room_id: str) -> list:
        url = settings.kick_url(self.history_url, room_id=room_id)
        try:
            async with http_client(self._transport) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise BackfillUnavailable(f"history request failed: {e}") from e
        except ValueError as e:
            raise BackfillUnavailable("history response is not JSON") from e
        return extract_messages(data)

    async def backfill(
        self,
        room_id: str,
        ingest: Callable[[dict], int],
        now: Optional[datetime] = None,
    ) -> int:
        """Replay recent history into `ingest`. Returns the number of messages replayed."""
        since = (now or utc_now()) - self.window
        try:
            messages = await self.fetch_recent(room_id)
        except BackfillUnavailable as e:
            logger.warn(f"⚠️ History unavailable for room {room_id} (not critical): {e}")
            return 0
        except Exception as e:
            logger.error(f"Unexpected error loading history for room {room_id}: {e}", e)
            return 0

        recent = select_recent(messages, since)
        for payload in recent:
            ingest(payload)

        logger.info(f"📜 Backfilled {len(recent)}/{len(messages)} messages for room {room_id}")
        return len(recent)
