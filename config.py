"""
Runtime configuration

Resolved once when the app is created and handed to the clients explicitly.
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_NYT_BASE_URL = 'https://www.nytimes.com'
DEFAULT_ANTHROPIC_API_URL = 'https://api.anthropic.com/v1/messages'
DEFAULT_ANTHROPIC_MODEL = 'claude-sonnet-4-20250514'


@dataclass(frozen=True)
class Settings:
    nyt_base_url: str = DEFAULT_NYT_BASE_URL
    anthropic_api_url: str = DEFAULT_ANTHROPIC_API_URL
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    anthropic_max_tokens: int = 4096
    database_url: Optional[str] = None
    hints_cache_ttl_days: int = 7
    upstream_timeout: float = 15
    anthropic_timeout: float = 60

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        """Build settings from environment variables, falling back to defaults"""
        env = os.environ if environ is None else environ
        return cls(
            nyt_base_url=env.get('NYT_BASE_URL', DEFAULT_NYT_BASE_URL).rstrip('/'),
            anthropic_api_url=env.get('ANTHROPIC_API_URL', DEFAULT_ANTHROPIC_API_URL),
            anthropic_model=env.get('ANTHROPIC_MODEL', DEFAULT_ANTHROPIC_MODEL),
            anthropic_max_tokens=int(env.get('ANTHROPIC_MAX_TOKENS', 4096)),
            database_url=env.get('DATABASE_URL') or None,
            hints_cache_ttl_days=int(env.get('HINTS_CACHE_TTL_DAYS', 7)),
            upstream_timeout=float(env.get('UPSTREAM_TIMEOUT', 15)),
            anthropic_timeout=float(env.get('ANTHROPIC_TIMEOUT', 60)),
        )

    @property
    def hints_cache_ttl_seconds(self) -> int:
        return self.hints_cache_ttl_days * 24 * 60 * 60
