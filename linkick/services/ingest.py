"""Single ingest path shared by history backfill and live delivery."""

from typing import Iterable, List, Optional

from linkick.core.config import settings
from linkick.core.errors import MalformedEvent
from linkick.core.logger import Logger
from linkick.services.categorizer import Categorizer, default_categorizer
from linkick.services.link_store import LinkRecord, LinkStore
from linkick.services.message_parser import ChatMessage, link_title, parse_message

logger = Logger("Ingest")


class LinkIngestor:
    def __init__(
        self,
        categorizer: Optional[Categorizer] = None,
        deny_domains: Optional[Iterable[str]] = None,
    ):
        self.categorizer = categorizer or default_categorizer
        if deny_domains is None:
            deny_domains = settings.deny_domains_list
        self.deny_domains = [d.lower() for d in deny_domains]

    def records_for(self, payload) -> List[LinkRecord]:
        """Classified records for one raw payload. Raises MalformedEvent."""
        message = ChatMessage.from_payload(payload)
        return [
            LinkRecord(
                url=candidate.url,
                title=link_title(candidate.url),
                category=self.categorizer.categorize(candidate.url).value,
                sender=candidate.sender,
                description=candidate.description,
            )
            for candidate in parse_message(message, self.deny_domains)
        ]

    def ingest(self, store: LinkStore, payload) -> int:
        """Insert the links found in `payload`; returns how many were new."""
        try:
            records = self.records_for(payload)
        except MalformedEvent as e:
            logger.debug(f"Dropped malformed event: {e}")
            return 0

        admitted = 0
        for record in records:
            if store.insert(record):
                admitted += 1
                logger.debug(f"🔗 [{record.category}] {record.url} from {record.sender}")
        return admitted
