"""
Session Controller

connect: resolve -> backfill -> subscribe, for a fresh Session with its own
LinkStore. At most one session is current; a new connect or stop tears the
previous one down first. Every ingest callback is bound to its session and is
rejected once that session is no longer current.

States: IDLE -> CONNECTING -> LIVE -> (ERROR | IDLE)
"""

import itertools
from enum import Enum
from typing import Callable, Iterable, Optional

from linkick.core.errors import ChannelNotFound
from linkick.core.logger import Logger
from linkick.core.timezone import utc_now
from linkick.services.channel_resolver import ChannelResolver
from linkick.services.history import HistoryBackfill
from linkick.services.ingest import LinkIngestor
from linkick.services.link_store import LinkRecord, LinkStore, SessionView
from linkick.services.live import LiveSubscriber, Subscription

logger = Logger("SessionController")

IDLE_SUMMARY = "Searching for links..."


class SessionState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    LIVE = "LIVE"
    ERROR = "ERROR"


class Session:
    """One connect attempt and the links it collected."""

    def __init__(self, session_id: int, slug: str):
        self.id = session_id
        self.slug = slug
        self.store = LinkStore()
        self.state = SessionState.CONNECTING
        self.room_id: Optional[str] = None
        self.error: Optional[str] = None
        self.subscription: Optional[Subscription] = None
        self.backfilled = 0
        self.closed = False

    @property
    def summary(self) -> str:
        if self.state == SessionState.CONNECTING:
            return f"Connecting to {self.slug}..."
        if self.state == SessionState.LIVE:
            return f"Listening to {self.slug} live chat..."
        if self.state == SessionState.ERROR:
            return self.error or f"Could not connect to {self.slug}."
        return f"Stopped listening to {self.slug}."

    def snapshot(self) -> SessionView:
        return self.store.snapshot(self.summary)


class SessionController:
    def __init__(
        self,
        resolver: Optional[ChannelResolver] = None,
        history: Optional[HistoryBackfill] = None,
        subscriber: Optional[LiveSubscriber] = None,
        ingestor: Optional[LinkIngestor] = None,
    ):
        self.resolver = resolver or ChannelResolver()
        self.history = history or HistoryBackfill()
        self.subscriber = subscriber or LiveSubscriber()
        self.ingestor = ingestor or LinkIngestor()
        self._ids = itertools.count(1)
        self._current: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    @property
    def state(self) -> SessionState:
        if self._current is None:
            return SessionState.IDLE
        return self._current.state

    def is_current(self, session: Session) -> bool:
        return self._current is session and not session.closed

    async def connect(
        self,
        slug: str,
        on_link_found: Optional[Callable[[LinkRecord], None]] = None,
    ) -> Session:
        """Start a new session for `slug`, replacing any current one.

        Raises ChannelNotFound (or ResolutionBlocked) when the channel cannot
        be resolved; the session is then left in ERROR.
        """
        await self.stop()

        session = Session(next(self._ids), (slug or "").strip())
        if on_link_found is not None:
            session.store.add_link_listener(on_link_found)
        self._current = session
        logger.info(f"🔌 Session {session.id}: connecting to {session.slug}")

        try:
            room_id = await self.resolver.resolve(session.slug)
        except ChannelNotFound as e:
            if self.is_current(session):
                session.state = SessionState.ERROR
                session.error = str(e)
            logger.warn(f"Session {session.id}: {e}")
            raise
        except Exception as e:
            if self.is_current(session):
                session.state = SessionState.ERROR
                session.error = f"Could not resolve channel '{session.slug}': {e}"
            logger.error(f"Session {session.id}: unexpected resolve failure: {e}", e)
            raise
        resolved_at = utc_now()

        if not self.is_current(session):
            logger.info(f"Session {session.id} superseded during resolve")
            return session
        session.room_id = room_id

        ingest = self._ingest_for(session)
        session.backfilled = await self.history.backfill(room_id, ingest, now=resolved_at)
        if not self.is_current(session):
            logger.info(f"Session {session.id} superseded during backfill")
            return session

        subscription = await self.subscriber.subscribe(room_id, ingest)
        if not self.is_current(session):
            await self.subscriber.unsubscribe(subscription)
            return session

        session.subscription = subscription
        session.state = SessionState.LIVE
        logger.info(
            f"✅ Session {session.id}: live on room {room_id} "
            f"({len(session.store)} links from history)"
        )
        return session

    async def stop(self):
        """Tear down the current session. Safe to call at any time, repeatedly."""
        session = self._current
        if session is None or session.closed:
            return
        session.closed = True
        # An errored session stays visible until the next connect
        if session.state != SessionState.ERROR:
            self._current = None

        subscription, session.subscription = session.subscription, None
        await self.subscriber.unsubscribe(subscription)

        if session.state != SessionState.ERROR:
            session.state = SessionState.IDLE
        logger.info(f"⏹️ Session {session.id} stopped")

    def snapshot(self) -> SessionView:
        if self._current is None:
            return SessionView(summary=IDLE_SUMMARY)
        return self._current.snapshot()

    def mark_visited(self, url: str) -> SessionView:
        if self._current is not None:
            self._current.store.mark_visited(url)
        return self.snapshot()

    def mark_visited_batch(self, urls: Iterable[str]) -> SessionView:
        if self._current is not None:
            self._current.store.mark_visited_batch(list(urls))
        return self.snapshot()

    def _ingest_for(self, session: Session) -> Callable[[dict], int]:
        def ingest(payload) -> int:
            if not self.is_current(session):
                logger.debug(f"Rejected event for stale session {session.id}")
                return 0
            return self.ingestor.ingest(session.store, payload)
        return ingest
