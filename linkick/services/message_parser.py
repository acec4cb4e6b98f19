"""
Chat message parsing.

Turns a raw chat payload (history item or live event) into link candidates.
Category is resolved later by the ingest path.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from linkick.core.config import settings
from linkick.core.errors import MalformedEvent
from linkick.core.timezone import parse_timestamp

URL_PATTERN = re.compile(r"https?://\S+")

ANONYMOUS_SENDER = "Anonymous"
DEFAULT_DESCRIPTION = "Shared link"


@dataclass(frozen=True)
class ChatMessage:
    content: str
    sender: str = ANONYMOUS_SENDER
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload) -> "ChatMessage":
        """Build a message from a dict or a JSON-encoded dict.

        Raises MalformedEvent for anything that is not a message object.
        A missing body is read as an empty message.
        """
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("utf-8", errors="replace")
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise MalformedEvent(f"payload is not JSON: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedEvent(f"unexpected payload type: {type(payload).__name__}")

        content = payload.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise MalformedEvent(f"content is {type(content).__name__}, expected text")

        sender = payload.get("sender")
        username = sender.get("username") if isinstance(sender, dict) else None
        if not isinstance(username, str) or not username.strip():
            username = ANONYMOUS_SENDER

        return cls(
            content=content,
            sender=username,
            created_at=parse_timestamp(payload.get("created_at")),
        )


@dataclass(frozen=True)
class LinkCandidate:
    url: str
    sender: str
    description: str


def extract_urls(text: str) -> List[str]:
    return URL_PATTERN.findall(text or "")


def is_denied(url: str, deny_domains: Iterable[str]) -> bool:
    lower = url.lower()
    return any(fragment in lower for fragment in deny_domains)


def describe(content: str, url: str) -> str:
    """Message text without the link, or the placeholder."""
    return content.replace(url, "", 1).strip() or DEFAULT_DESCRIPTION


def link_title(url: str) -> str:
    """Host name of the link; no page metadata is fetched."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    return host or url


def parse_message(
    message: ChatMessage,
    deny_domains: Optional[Iterable[str]] = None,
) -> List[LinkCandidate]:
    """Extract link candidates; a message without links yields []."""
    if deny_domains is None:
        deny_domains = settings.deny_domains_list
    deny_domains = [d.lower() for d in deny_domains]

    candidates = []
    for url in extract_urls(message.content):
        # Invite and affiliate spam
        if is_denied(url, deny_domains):
            continue
        candidates.append(LinkCandidate(
            url=url,
            sender=message.sender,
            description=describe(message.content, url),
        ))
    return candidates
