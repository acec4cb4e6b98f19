import asyncio
import webbrowser
from typing import Callable, Iterable, List, Optional

from linkick.core.config import settings
from linkick.core.logger import Logger
from linkick.services.link_store import LinkRecord

logger = Logger("BatchOpener")


class BatchOpener:
    """Opens several links one after another and archives them.

    More than `threshold` links need a confirmation first. Consecutive opens
    are spaced by `stagger_ms` so browsers do not treat them as a popup burst.
    """

    def __init__(
        self,
        opener: Optional[Callable[[str], object]] = None,
        threshold: Optional[int] = None,
        stagger_ms: Optional[int] = None,
    ):
        self.opener = opener or webbrowser.open_new_tab
        self.threshold = settings.BATCH_OPEN_CONFIRM_THRESHOLD if threshold is None else threshold
        self.stagger_ms = settings.BATCH_OPEN_STAGGER_MS if stagger_ms is None else stagger_ms

    def requires_confirmation(self, count: int) -> bool:
        return count > self.threshold

    async def open(
        self,
        records: Iterable[LinkRecord],
        mark_visited_batch: Callable[[List[str]], object],
        confirm: Optional[Callable[[int], bool]] = None,
    ) -> List[str]:
        """Open `records`, then mark them visited. Returns the opened URLs."""
        records = list(records)
        if not records:
            return []

        if self.requires_confirmation(len(records)):
            if confirm is None or not confirm(len(records)):
                logger.info(f"Batch open of {len(records)} links not confirmed")
                return []

        opened = []
        for index, record in enumerate(records):
            if index:
                await asyncio.sleep(self.stagger_ms / 1000)
            try:
                self.opener(record.url)
            except Exception as e:
                # Failed links stay active
                logger.error(f"Could not open {record.url}: {e}", e)
                continue
            opened.append(record.url)

        if opened:
            mark_visited_batch(opened)
        logger.info(f"🗂️ Opened and archived {len(opened)}/{len(records)} links")
        return opened
