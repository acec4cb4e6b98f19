from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Dict, List, Optional

DEFAULT_CHANNEL_OVERRIDES = (
    "buraksakinol:25461130,"
    "cavs:25594923,"
    "purplebixi:25593921,"
    "jahrein:25314085,"
    "vroft:26489449,"
    "oonuuur:24845898,"
    "burhi:7736118"
)


def parse_comma_list(v):
    """Parse comma-separated string into list. 'none' means empty/no filtering."""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Treat 'none' as no filtering
        if v.strip().lower() == 'none':
            return []
        return [x.strip() for x in v.split(',') if x.strip() and x.strip().lower() != 'none']
    return []


def parse_pair_list(v) -> Dict[str, str]:
    """Parse 'key:value,key:value' into a dict with lowercased keys."""
    pairs = {}
    for item in parse_comma_list(v):
        if ":" not in item:
            continue
        key, value = item.split(":", 1)
        if key.strip() and value.strip():
            pairs[key.strip().lower()] = value.strip()
    return pairs


class Settings(BaseSettings):
    # App Settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None  # e.g. /var/log/linkick/app.log
    API_ENABLED: bool = True
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 10002

    # Kick endpoints. {slug} / {room_id} are filled in per request.
    KICK_CHANNEL_URL: str = "https://kick.com/api/v1/channels/{slug}"
    KICK_HISTORY_URL: str = "https://kick.com/api/v2/chatrooms/{room_id}/messages"
    KICK_PROXY_PREFIX: Optional[str] = None  # e.g. https://corsproxy.io/?
    HTTP_TIMEOUT: float = 10.0
    HTTP_USER_AGENT: str = "Mozilla/5.0 (compatible; LinKick/1.0)"

    # Channel resolution - stored as comma-separated strings to avoid pydantic-settings JSON parsing
    CHANNEL_OVERRIDES: Optional[str] = DEFAULT_CHANNEL_OVERRIDES
    DENY_DOMAINS: Optional[str] = "discord,wraithesports"

    # History backfill
    HISTORY_WINDOW_MINUTES: int = 30

    # Live chat (Pusher)
    PUSHER_KEY: str = "32cbd69e4b950bf97679"
    PUSHER_CLUSTER: str = "us2"
    LIVE_QUEUE_SIZE: int = 1000
    LIVE_RECONNECT_DELAY: float = 5.0

    # Batch open
    BATCH_OPEN_CONFIRM_THRESHOLD: int = 5
    BATCH_OPEN_STAGGER_MS: int = 300

    DISPLAY_TIMEZONE: str = "Europe/Istanbul"

    @field_validator(
        'API_PORT', 'HISTORY_WINDOW_MINUTES', 'LIVE_QUEUE_SIZE',
        'BATCH_OPEN_CONFIRM_THRESHOLD', 'BATCH_OPEN_STAGGER_MS',
        mode='before'
    )
    @classmethod
    def parse_optional_int(cls, v, info):
        if v is None or v == '':
            defaults = {
                'API_PORT': 10002,
                'HISTORY_WINDOW_MINUTES': 30,
                'LIVE_QUEUE_SIZE': 1000,
                'BATCH_OPEN_CONFIRM_THRESHOLD': 5,
                'BATCH_OPEN_STAGGER_MS': 300,
            }
            return defaults.get(info.field_name)
        return int(v)

    @property
    def channel_overrides_map(self) -> Dict[str, str]:
        return parse_pair_list(self.CHANNEL_OVERRIDES)

    @property
    def deny_domains_list(self) -> List[str]:
        return [d.lower() for d in parse_comma_list(self.DENY_DOMAINS)]

    @property
    def pusher_url(self) -> str:
        return (
            f"wss://ws-{self.PUSHER_CLUSTER}.pusher.com/app/{self.PUSHER_KEY}"
            "?protocol=7&client=linkick-python&version=1.0.0&flash=false"
        )

    def kick_url(self, template: str, **params) -> str:
        """Fill an endpoint template and apply the optional proxy prefix."""
        url = template.format(**params)
        if self.KICK_PROXY_PREFIX:
            return f"{self.KICK_PROXY_PREFIX}{url}"
        return url

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore unknown env vars


settings = Settings()
