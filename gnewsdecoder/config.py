"""Decoder configuration.

``DecoderConfig`` is what the library consumes. ``Settings`` is only read by
the command-line layer, which maps environment variables onto a config.
"""

from functools import lru_cache
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT = 30.0
DEFAULT_CONCURRENCY = 10


class DecoderConfig(BaseModel):
    """Options applied once when a decoder is built.

    ``client`` replaces the whole transport; ``proxy`` and ``timeout`` are
    ignored when it is given.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    proxy: Optional[str] = None
    client: Optional[httpx.AsyncClient] = None
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0)


class Settings(BaseSettings):
    """Command-line defaults loaded from ``GNEWS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GNEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    proxy: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = 0
    interval: int = 0
    log_level: str = "WARNING"

    def decoder_config(self, proxy: str | None = None) -> DecoderConfig:
        """Build a ``DecoderConfig``, letting an explicit proxy win over the env."""
        return DecoderConfig(proxy=proxy or self.proxy, timeout=self.timeout)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
