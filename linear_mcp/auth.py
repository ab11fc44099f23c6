"""
Authentication state for the Linear API.

The state is explicit: a server starts either PAT-authenticated (when
LINEAR_ACCESS_TOKEN is set) or uninitialized. Starting the OAuth flow records
a pending exchange next to the active credential; the credential only changes
once the code exchange succeeds. An unauthenticated server shows the pending
flow as OAUTH_PENDING, an authenticated one keeps its state until then.
"""
from __future__ import annotations

import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from .config import Settings
from .errors import AuthError, OperationError, ValidationError

logger = logging.getLogger("linear_mcp.auth")


class AuthState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    PAT = "pat"
    OAUTH_PENDING = "oauth_pending"
    OAUTH = "oauth"


@dataclass(frozen=True)
class OAuthClient:
    client_id: str
    client_secret: str
    redirect_uri: str
    state: str


class LinearAuth:
    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings or Settings()
        self.http_client = http_client
        self.state = AuthState.UNINITIALIZED
        self._access_token: Optional[str] = None
        self._oauth: Optional[OAuthClient] = None
        self._oauth_pending = False

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "LinearAuth":
        auth = cls(settings, http_client)
        if settings.access_token:
            auth.initialize_pat(settings.access_token)
        return auth

    @property
    def oauth_pending(self) -> bool:
        return self._oauth_pending

    def initialize_pat(self, access_token: str) -> None:
        token = (access_token or "").strip()
        if not token:
            raise ValidationError("Personal access token must not be empty")
        self._access_token = token
        self.state = AuthState.PAT

    def initialize_oauth(self, client_id: str, client_secret: str, redirect_uri: str) -> None:
        self._oauth = OAuthClient(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            state=secrets.token_urlsafe(16),
        )
        self._oauth_pending = True
        if not self.is_authenticated():
            self.state = AuthState.OAUTH_PENDING

    def authorization_url(self) -> str:
        if self._oauth is None:
            raise AuthError("OAuth flow has not been started")
        query = urlencode(
            {
                "client_id": self._oauth.client_id,
                "redirect_uri": self._oauth.redirect_uri,
                "response_type": "code",
                "scope": self.settings.oauth_scopes,
                "state": self._oauth.state,
            }
        )
        return f"{self.settings.oauth_authorize_url}?{query}"

    async def handle_callback(self, code: str) -> None:
        """
        Exchange `code` for an access token.

        On any failure the active credential and state are left as they were,
        and the flow stays pending so the callback can be retried.
        """
        if not self._oauth_pending or self._oauth is None:
            raise AuthError("No OAuth flow is pending; call linear_auth first")
        if self.http_client is None:
            raise AuthError("No HTTP client available for the OAuth token exchange")

        try:
            response = await self.http_client.post(
                self.settings.oauth_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self._oauth.redirect_uri,
                    "client_id": self._oauth.client_id,
                    "client_secret": self._oauth.client_secret,
                },
            )
        except httpx.HTTPError as exc:
            raise OperationError(f"OAuth token exchange failed: {exc}") from exc

        if response.status_code >= 400:
            raise OperationError(f"OAuth token exchange failed: HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise OperationError(f"OAuth token exchange failed: invalid JSON response: {exc}") from exc
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise OperationError("OAuth token exchange returned no access_token")

        self._access_token = token
        self._oauth_pending = False
        self.state = AuthState.OAUTH
        logger.info("OAuth flow completed")

    def is_authenticated(self) -> bool:
        return self.state in (AuthState.PAT, AuthState.OAUTH) and bool(self._access_token)

    def authorization_header(self) -> Dict[str, str]:
        if not self.is_authenticated():
            raise AuthError("Not authenticated. Set LINEAR_ACCESS_TOKEN or complete the OAuth flow.")
        # Linear expects personal API keys without a scheme
        if self.state is AuthState.PAT:
            return {"Authorization": self._access_token}
        return {"Authorization": f"Bearer {self._access_token}"}
