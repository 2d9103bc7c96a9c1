from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """Base error for calls to external services."""


class ConfigurationError(ProviderError):
    pass


class UpstreamError(ProviderError):
    def __init__(self, provider: str, status_code: int, body: str = "", endpoint: Optional[str] = None):
        self.provider = provider
        self.status_code = status_code
        self.body = (body or "")[:500]
        self.endpoint = endpoint
        where = f" {endpoint}" if endpoint else ""
        super().__init__(f"{provider}{where} returned HTTP {status_code}: {self.body}")
