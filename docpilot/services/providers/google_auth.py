from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from docpilot.config import Settings
from docpilot.errors import ConfigurationError
from docpilot.services.providers.http import send, json_or_empty

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"

# Scopes the report and assistant need on the OAuth client
OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/analytics.readonly",
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
]


class TokenProvider:
    """Hands out an OAuth access token: a static one, or one refreshed from a refresh token."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = client
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.http_timeout)
        return self._client

    def token(self) -> str:
        s = self.settings
        if s.google_refresh_token and s.google_client_id and s.google_client_secret:
            # refresh a minute early
            if self._token and time.time() < self._expires_at - 60:
                return self._token
            return self._refresh()
        if s.google_access_token:
            return s.google_access_token
        raise ConfigurationError(
            "No Google credentials: set GOOGLE_ACCESS_TOKEN or GOOGLE_REFRESH_TOKEN/GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET"
        )

    def _refresh(self) -> str:
        s = self.settings
        resp = send(
            self._http(),
            "google_oauth",
            "/token",
            "POST",
            TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": s.google_refresh_token,
                "client_id": s.google_client_id,
                "client_secret": s.google_client_secret,
            },
        )
        data = json_or_empty(resp)
        token = data.get("access_token")
        if not token:
            raise ConfigurationError("OAuth refresh returned no access_token")
        self._token = token
        self._expires_at = time.time() + int(data.get("expires_in", 3600))
        logger.info("google_oauth: refreshed access token (expires_in=%s)", data.get("expires_in"))
        return token
