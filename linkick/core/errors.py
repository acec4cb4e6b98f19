"""Error taxonomy for channel resolution and ingest."""


class LinkickError(Exception):
    """Base class for all LinKick errors."""
    pass


class ChannelNotFound(LinkickError):
    """Raised when a channel slug cannot be resolved to a chatroom id."""

    def __init__(self, slug: str, reason: str):
        self.slug = slug
        self.reason = reason
        super().__init__(f"Could not resolve channel '{slug}': {reason}")


class ResolutionBlocked(ChannelNotFound):
    """Raised when the channel lookup was refused or could not be reached."""
    pass


class BackfillUnavailable(LinkickError):
    """Raised when the history page cannot be fetched or read."""
    pass


class MalformedEvent(LinkickError):
    """Raised when a single chat event cannot be parsed."""
    pass
