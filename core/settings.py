"""Application settings and environment configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
import os
from functools import lru_cache


@dataclass
class Settings:
    """Runtime configuration resolved from environment variables."""

    craft_api_url: str = "https://connect.craft.do/api/v1"
    craft_api_key: str = ""
    upstream_timeout: float = 15.0
    claude_api_key: str = ""
    claude_base_url: str = "https://api.anthropic.com/v1"
    claude_model: str = "claude-sonnet-4-20250514"
    llm_mode: str = ""
    llm_timeout: float = 60.0
    cache_fresh_ttl: float = 300.0
    cache_stale_ttl: float = 600.0
    plan_batch_size: int = 30
    plan_lookahead_days: int = 90
    cascade_lookahead_days: int = 180
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        env_craft_url = os.getenv("CRAFT_API_URL")
        env_craft_key = os.getenv("CRAFT_API_KEY")
        env_claude_key = os.getenv("CLAUDE_API_KEY")
        env_claude_base = os.getenv("CLAUDE_API_BASE")
        env_model = os.getenv("CLAUDE_MODEL")
        env_mode = os.getenv("LLM_MODE")
        env_level = os.getenv("LOG_LEVEL")
        if env_craft_url:
            self.craft_api_url = env_craft_url
        if env_craft_key:
            self.craft_api_key = env_craft_key
        if env_claude_key:
            self.claude_api_key = env_claude_key
        if env_claude_base:
            self.claude_base_url = env_claude_base
        if env_model:
            self.claude_model = env_model
        if env_mode:
            self.llm_mode = env_mode
        if env_level:
            self.log_level = env_level
        self.craft_api_url = self.craft_api_url.rstrip("/")
        self.claude_base_url = self.claude_base_url.rstrip("/")

        self.upstream_timeout = _env_number("UPSTREAM_TIMEOUT", self.upstream_timeout, float)
        self.llm_timeout = _env_number("LLM_TIMEOUT", self.llm_timeout, float)
        self.cache_fresh_ttl = _env_number("CACHE_FRESH_TTL", self.cache_fresh_ttl, float)
        self.cache_stale_ttl = _env_number("CACHE_STALE_TTL", self.cache_stale_ttl, float)
        self.plan_batch_size = _env_number("PLAN_BATCH_SIZE", self.plan_batch_size, int)
        self.plan_lookahead_days = _env_number("PLAN_LOOKAHEAD_DAYS", self.plan_lookahead_days, int)
        self.cascade_lookahead_days = _env_number(
            "CASCADE_LOOKAHEAD_DAYS", self.cascade_lookahead_days, int
        )
        if self.cache_stale_ttl < self.cache_fresh_ttl:
            raise ValueError("CACHE_STALE_TTL must not be shorter than CACHE_FRESH_TTL")

    @property
    def resolved_llm_mode(self) -> str:
        """Choose between HTTP or stubbed responses."""

        if self.llm_mode:
            return self.llm_mode
        # Without a key there is nothing to call; fall back to the stub.
        return "http" if self.claude_api_key else "stub"


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
