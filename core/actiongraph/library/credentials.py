"""Provider credentials for action handlers.

Credentials are kept in process memory, keyed by provider name (``"openai"``).
The shared ``credentials_manager`` is seeded from settings, so
``OPENAI_API_KEY`` is picked up without extra wiring; tests and embedding
applications can override entries with ``set_credentials``.
"""

from __future__ import annotations

from actiongraph.config import Settings, settings


class MissingCredentialsError(ValueError):
    """Raised when a handler needs a credential that is not configured."""


class CredentialsManager:
    """In-memory credential store for action handlers."""

    def __init__(self, config: Settings | None = None) -> None:
        self._store: dict[str, dict[str, str]] = {}
        config = config or settings
        if config.openai_api_key:
            self._store["openai"] = {"api_key": config.openai_api_key}

    def set_credentials(self, provider: str, data: dict[str, str]) -> None:
        self._store[provider] = dict(data)

    def get_credentials(self, provider: str) -> dict[str, str]:
        return dict(self._store.get(provider, {}))

    def get_api_key(self, provider: str) -> str | None:
        return self._store.get(provider, {}).get("api_key")

    def require_api_key(self, provider: str) -> str:
        api_key = self.get_api_key(provider)
        if not api_key:
            raise MissingCredentialsError(f"No API key configured for provider '{provider}'")
        return api_key

    def clear(self, provider: str) -> None:
        self._store.pop(provider, None)

    def providers(self) -> list[str]:
        return sorted(self._store)


credentials_manager = CredentialsManager()
