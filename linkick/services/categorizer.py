"""
URL Categorizer

Ordered rule list over the lowercased URL. Rules run in list order and the
first one that matches decides the category; everything else is OTHER.

Rules:
- SubstringRule: any of its fragments is contained in the URL
- SameOriginRule: Kick links, split into clip / video / channel
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Sequence


class Category(str, Enum):
    """Category labels. The value is the label stored on a LinkRecord."""
    SCREENSHOT = "SCREENSHOT"
    VIDEO_A = "VIDEO_A"
    SOCIAL_X = "SOCIAL_X"
    SOCIAL_PHOTO = "SOCIAL_PHOTO"
    SOCIAL_SHORT = "SOCIAL_SHORT"
    CLIP = "CLIP"
    SELF_CLIP = "SELF_CLIP"
    SELF_VIDEO = "SELF_VIDEO"
    SELF_CHANNEL = "SELF_CHANNEL"
    RIVAL_STREAM = "RIVAL_STREAM"
    CHAT_VOICE = "CHAT_VOICE"
    AUDIO = "AUDIO"
    DEV = "DEV"
    NEWS = "NEWS"
    OTHER = "OTHER"


# Human-facing names, as shown on the category filter buttons
DISPLAY_LABELS: Dict[Category, str] = {
    Category.SCREENSHOT: "PRNT.SC",
    Category.VIDEO_A: "YOUTUBE",
    Category.SOCIAL_X: "X (TWITTER)",
    Category.SOCIAL_PHOTO: "INSTAGRAM",
    Category.SOCIAL_SHORT: "TIKTOK",
    Category.CLIP: "STREAMABLE",
    Category.SELF_CLIP: "KICK CLIP",
    Category.SELF_VIDEO: "KICK VIDEO",
    Category.SELF_CHANNEL: "KICK CHANNEL",
    Category.RIVAL_STREAM: "TWITCH",
    Category.CHAT_VOICE: "DISCORD",
    Category.AUDIO: "SPOTIFY / MUSIC",
    Category.DEV: "SOFTWARE / GITHUB",
    Category.NEWS: "NEWS",
    Category.OTHER: "OTHER",
}


def display_label(category: str) -> str:
    """Display name for a category label; unknown labels are returned as-is."""
    try:
        return DISPLAY_LABELS[Category(category)]
    except ValueError:
        return category


class CategoryRule(ABC):
    """Base class for rules. `url` is always already lowercased."""

    name: str = ""

    @abstractmethod
    def match(self, url: str) -> Optional[Category]:
        pass

    @abstractmethod
    def describe(self) -> dict:
        pass


class SubstringRule(CategoryRule):
    """Matches when any fragment is a substring of the URL."""

    def __init__(self, category: Category, fragments: Sequence[str]):
        self.category = category
        self.fragments = tuple(f.lower() for f in fragments)
        self.name = category.value.lower()

    def match(self, url: str) -> Optional[Category]:
        if any(fragment in url for fragment in self.fragments):
            return self.category
        return None

    def describe(self) -> dict:
        return {
            "name": self.name,
            "fragments": list(self.fragments),
            "categories": [self.category.value],
        }


class SameOriginRule(CategoryRule):
    """Kick's own links: clips, VODs, otherwise a channel page."""

    def __init__(self, host: str = "kick.com"):
        self.host = host
        self.name = "same_origin"

    def match(self, url: str) -> Optional[Category]:
        if self.host not in url:
            return None
        if "clip" in url:
            return Category.SELF_CLIP
        if "/video/" in url:
            return Category.SELF_VIDEO
        return Category.SELF_CHANNEL

    def describe(self) -> dict:
        return {
            "name": self.name,
            "fragments": [self.host],
            "categories": [
                Category.SELF_CLIP.value,
                Category.SELF_VIDEO.value,
                Category.SELF_CHANNEL.value,
            ],
        }


def default_rules() -> List[CategoryRule]:
    """The built-in rule list. Order matters."""
    return [
        SubstringRule(Category.SCREENSHOT, ["prnt.sc", "lightshot"]),
        SubstringRule(Category.VIDEO_A, ["youtube.com", "youtu.be"]),
        SubstringRule(Category.SOCIAL_X, ["twitter.com", "x.com"]),
        SubstringRule(Category.SOCIAL_PHOTO, ["instagram.com"]),
        SubstringRule(Category.SOCIAL_SHORT, ["tiktok.com"]),
        SubstringRule(Category.CLIP, ["streamable.com"]),
        SameOriginRule("kick.com"),
        SubstringRule(Category.RIVAL_STREAM, ["twitch.tv"]),
        # Also on the parser deny-list; kept so direct callers still get a label
        SubstringRule(Category.CHAT_VOICE, ["discord"]),
        SubstringRule(Category.AUDIO, ["spotify.com", "soundcloud.com"]),
        SubstringRule(Category.DEV, ["github.com", "stackoverflow.com"]),
        SubstringRule(
            Category.NEWS,
            ["haber", "gazete", "ajans", "news", "cnn", "bbc", "sondakika"],
        ),
    ]


class Categorizer:
    """Stateless first-match-wins classifier."""

    def __init__(self, rules: Optional[Sequence[CategoryRule]] = None):
        self._rules: List[CategoryRule] = list(rules) if rules is not None else default_rules()

    def categorize(self, url: str) -> Category:
        lower = (url or "").lower()
        for rule in self._rules:
            category = rule.match(lower)
            if category is not None:
                return category
        return Category.OTHER

    def list_rules(self) -> List[dict]:
        return [rule.describe() for rule in self._rules]


default_categorizer = Categorizer()


def categorize(url: str) -> Category:
    return default_categorizer.categorize(url)
