"""Pydantic BaseSettings — endpoints, retry policy and credentials for the signing engine."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────────
    APP_ENV: Literal["dev", "paper", "prod"] = "dev"
    APP_NAME: str = "polymarket-signing-engine"
    LOG_LEVEL: str = "INFO"

    # ── Chain ───────────────────────────────────────────────────
    CHAIN_ID: int = 137

    # ── Network / API ───────────────────────────────────────────
    CLOB_REST_BASE_URL: str = "https://clob.polymarket.com"
    RELAYER_BASE_URL: str = "https://relayer-v2.polymarket.com"
    GAMMA_BASE_URL: str = "https://gamma-api.polymarket.com"
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # ── Retry policy (fixed delay) ──────────────────────────────
    HTTP_MAX_RETRIES: int = Field(default=5, ge=1)
    HTTP_RETRY_DELAY_SECONDS: float = Field(default=3.0, ge=0)

    # ── Relayer confirmation polling ────────────────────────────
    TX_CONFIRMATION_TIMEOUT_SECONDS: float = Field(default=100.0, gt=0)
    TX_POLL_INTERVAL_SECONDS: float = Field(default=5.0, gt=0)

    # ── Pricing ─────────────────────────────────────────────────
    DEFAULT_SLIPPAGE_PCT: float = Field(default=0.1, ge=0)

    # ── Credentials (never commit real values) ──────────────────
    POLYMARKET_PRIVATE_KEY: str = ""
    POLYMARKET_API_KEY: str = ""
    POLYMARKET_SECRET: str = ""
    POLYMARKET_PASSPHRASE: str = ""


settings = Settings()
