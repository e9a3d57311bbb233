"""Configuration for actiongraph.

Values are read from the environment once, at import. CLI flags override the
server host/port.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Application configuration."""

    # Action handlers
    http_timeout_s: float = float(os.getenv("ACTIONGRAPH_HTTP_TIMEOUT_S", "20"))
    user_agent: str = os.getenv("ACTIONGRAPH_USER_AGENT", "agentic-workflow-engine")
    llm_model: str = os.getenv("ACTIONGRAPH_LLM_MODEL", "gpt-4o-mini")

    # Engine
    enforce_timeouts: bool = _env_bool("ACTIONGRAPH_ENFORCE_TIMEOUTS", False)

    # Dev server
    host: str = os.getenv("ACTIONGRAPH_HOST", "127.0.0.1")
    port: int = int(os.getenv("ACTIONGRAPH_PORT", "8787"))

    # Credentials
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")


settings = Settings()
