"""
Link Store

Canonical, deduplicated, newest-first collection of classified links for one
session, plus derived statistics.

Every mutation builds a new immutable _StoreState and swaps it in with a single
assignment, so a reader always sees either the old or the new state in full.
Stats are recomputed by scanning the whole collection on each mutation. That
is O(n) per insert, and n is bounded by what one session observes.
"""

from dataclasses import dataclass, field, replace, asdict
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from linkick.core.logger import Logger

logger = Logger("LinkStore")

NO_CATEGORY = "none"


@dataclass(frozen=True)
class LinkRecord:
    url: str
    title: str
    category: str
    sender: str
    description: str
    visited: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassificationStats:
    total_links: int = 0
    top_category: str = NO_CATEGORY

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SessionView:
    """Read-only view handed to the API and CLI."""
    summary: str
    links: Tuple[LinkRecord, ...] = ()
    stats: ClassificationStats = field(default_factory=ClassificationStats)

    @property
    def active_links(self) -> List[LinkRecord]:
        return [link for link in self.links if not link.visited]

    @property
    def archived_links(self) -> List[LinkRecord]:
        return [link for link in self.links if link.visited]

    def category_counts(self) -> Dict[str, int]:
        """Active link count per category, in display (newest-first) order."""
        counts: Dict[str, int] = {}
        for link in self.active_links:
            counts[link.category] = counts.get(link.category, 0) + 1
        return counts

    def grouped(self) -> Dict[str, List[LinkRecord]]:
        """Active links grouped by category."""
        groups: Dict[str, List[LinkRecord]] = {}
        for link in self.active_links:
            groups.setdefault(link.category, []).append(link)
        return groups

    def filter(self, view: str = "all", category: Optional[str] = None) -> List[LinkRecord]:
        """Links for one tab ('all', 'active', 'archived'), optionally one category."""
        if view == "active":
            links = self.active_links
        elif view == "archived":
            links = self.archived_links
        else:
            links = list(self.links)
        if category:
            links = [link for link in links if link.category == category]
        return links

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "links": [link.to_dict() for link in self.links],
            "stats": self.stats.to_dict(),
        }


def compute_stats(links: Tuple[LinkRecord, ...]) -> ClassificationStats:
    """Stats over `links` (newest-first).

    top_category only counts active links. Ties go to the category seen first
    when scanning in insertion order, i.e. oldest first.
    """
    counts: Dict[str, int] = {}
    for link in reversed(links):
        if link.visited:
            continue
        counts[link.category] = counts.get(link.category, 0) + 1

    top_category = NO_CATEGORY
    max_count = 0
    for category, count in counts.items():
        if count > max_count:
            max_count = count
            top_category = category

    return ClassificationStats(total_links=len(links), top_category=top_category)


@dataclass(frozen=True)
class _StoreState:
    links: Tuple[LinkRecord, ...] = ()
    urls: FrozenSet[str] = frozenset()
    stats: ClassificationStats = field(default_factory=ClassificationStats)


class LinkStore:
    def __init__(self):
        self._state = _StoreState()
        self._link_listeners: List[Callable[[LinkRecord], None]] = []
        self._change_listeners: List[Callable[["LinkStore"], None]] = []

    def __len__(self) -> int:
        return len(self._state.links)

    def __contains__(self, url: str) -> bool:
        return url in self._state.urls

    @property
    def links(self) -> Tuple[LinkRecord, ...]:
        return self._state.links

    @property
    def stats(self) -> ClassificationStats:
        return self._state.stats

    def get(self, url: str) -> Optional[LinkRecord]:
        if url not in self._state.urls:
            return None
        return next(link for link in self._state.links if link.url == url)

    def add_link_listener(self, callback: Callable[[LinkRecord], None]):
        """Called once per newly admitted record, in insertion order."""
        self._link_listeners.append(callback)

    def add_change_listener(self, callback: Callable[["LinkStore"], None]):
        """Called after every mutation that changed the collection."""
        self._change_listeners.append(callback)

    def insert(self, record: LinkRecord) -> bool:
        """Prepend `record`. Returns False when its URL is already stored."""
        state = self._state
        if record.url in state.urls:
            logger.debug(f"Duplicate ignored: {record.url}")
            return False

        links = (record,) + state.links
        self._state = _StoreState(
            links=links,
            urls=state.urls | {record.url},
            stats=compute_stats(links),
        )

        self._notify_link(record)
        self._notify_change()
        return True

    def mark_visited(self, url: str) -> bool:
        return self.mark_visited_batch([url]) > 0

    def mark_visited_batch(self, urls: Iterable[str]) -> int:
        """Mark the given URLs visited. Unknown or already visited URLs are skipped."""
        state = self._state
        wanted = {url for url in urls if url in state.urls}
        if not wanted:
            return 0

        changed = 0
        links = []
        for link in state.links:
            if link.url in wanted and not link.visited:
                link = replace(link, visited=True)
                changed += 1
            links.append(link)
        if not changed:
            return 0

        links = tuple(links)
        self._state = _StoreState(links=links, urls=state.urls, stats=compute_stats(links))
        self._notify_change()
        return changed

    def snapshot(self, summary: str = "") -> SessionView:
        state = self._state
        return SessionView(summary=summary, links=state.links, stats=state.stats)

    def _notify_link(self, record: LinkRecord):
        for callback in self._link_listeners:
            try:
                callback(record)
            except Exception as e:
                logger.error(f"Link listener failed for {record.url}: {e}", e)

    def _notify_change(self):
        for callback in self._change_listeners:
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Change listener failed: {e}", e)
