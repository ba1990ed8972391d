"""Runtime settings (12-factor style).

Environment variables (all optional, prefix ``WUNGUS_``):

* ``WUNGUS_MAX_LENGTH``        - segment length ceiling, default ``2000``
* ``WUNGUS_DEBUG``             - verbose logging, default ``false``
* ``WUNGUS_DISCORD_TOKEN``     - bot token, needed only for Discord delivery
* ``WUNGUS_DISCORD_API_BASE``  - default: ``https://discord.com/api/v10``
* ``WUNGUS_SEND_RETRIES``      - attempts per segment, default ``3``
* ``WUNGUS_RETRY_BASE_DELAY``  - backoff base in seconds, default ``1.0``
* ``WUNGUS_TYPING_INTERVAL``   - seconds between typing pings, default ``5.0``
* ``WUNGUS_HISTORY_SIZE``      - messages kept per conversation, default ``5``
* ``WUNGUS_SUPPRESS_EMBEDS``   - suppress link previews, default ``true``

Usage:

    from wungus.config import Settings
    settings = Settings()  # loads env vars and .env
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from wungus.markdown.chunk import MAX_LENGTH, MIN_LENGTH

DISCORD_API_BASE = "https://discord.com/api/v10"


class Settings(BaseSettings):
    """Typed view over the process environment."""

    model_config = SettingsConfigDict(
        env_prefix="WUNGUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_length: int = Field(default=MAX_LENGTH, ge=MIN_LENGTH)
    debug: bool = False

    # Discord delivery
    discord_token: str | None = None
    discord_api_base: str = DISCORD_API_BASE
    send_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    typing_interval: float = Field(default=5.0, gt=0)
    suppress_embeds: bool = True

    history_size: int = Field(default=5, ge=1)

    @classmethod
    def for_testing(cls) -> "Settings":
        """Settings with no token and no backoff delay."""
        return cls(_env_file=None, discord_token=None, retry_base_delay=0.0)
