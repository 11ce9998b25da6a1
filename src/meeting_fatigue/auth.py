"""Google OAuth helpers.

Objective:
    Provide the small amount of OAuth2 plumbing the web app needs to obtain a
    delegated access token for the Google Calendar API, and to read that
    token back from incoming requests.

Responsibilities:
    - Build the Google consent URL for read-only calendar + profile scopes.
    - Exchange an authorization code for tokens at the Google token endpoint.
    - Parse ``Authorization: Bearer <token>`` headers.

High-level call tree:
    - :class:`GoogleOAuthClient`
        - :meth:`GoogleOAuthClient.get_auth_url`
        - :meth:`GoogleOAuthClient.exchange_code`
    - :func:`extract_bearer_token`

Operational notes:
    - Tokens are never stored server-side. The callback hands the access
      token to the dashboard, which sends it back as a bearer token.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import requests

from .config import Settings
from .models import OAuthTokens

logger = logging.getLogger(__name__)


class AuthorizationError(ValueError):
    """Raised when a request carries no usable bearer token."""


class OAuthError(RuntimeError):
    """Raised when Google rejects an authorization code exchange."""


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization`` header value.

    Args:
        authorization: Raw header value.

    Returns:
        str: Bearer token.

    Raises:
        AuthorizationError: If the header is missing, uses another scheme, or
            carries an empty token.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthorizationError("Missing or invalid authorization token")

    token = authorization[len("Bearer ") :].strip()
    if not token:
        raise AuthorizationError("Missing or invalid authorization token")
    return token


class GoogleOAuthClient:
    """
    Google OAuth2 web-server flow.

    Attributes:
        settings: Application settings containing Google client credentials.
    """

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    SCOPES = [
        "https://www.googleapis.com/auth/calendar.readonly",
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    ]

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_auth_url(self, state: Optional[str] = None) -> str:
        """
        Build the Google consent screen URL.

        Args:
            state: Optional opaque value echoed back to the callback.

        Returns:
            str: URL to redirect the user to.
        """
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            "access_type": "offline",
        }
        if state:
            params["state"] = state
        return f"{self.AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the OAuth callback.

        Returns:
            OAuthTokens: Token payload.

        Raises:
            OAuthError: If the request fails or no access token is returned.
        """
        data = {
            "code": code,
            "client_id": self.settings.google_client_id,
            "client_secret": self.settings.google_client_secret,
            "redirect_uri": self.settings.google_redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            response = requests.post(self.TOKEN_URL, data=data, timeout=30)
        except requests.RequestException as e:
            logger.error(f"OAuth token request failed: {e}")
            raise OAuthError("Authentication failed") from e

        if not response.ok:
            logger.error(f"OAuth token error: {response.status_code} - {response.text}")
            raise OAuthError("Authentication failed")

        payload = response.json()
        if "access_token" not in payload:
            error_description = payload.get("error_description", "Unknown error")
            logger.error(f"OAuth token response had no access token: {error_description}")
            raise OAuthError("Authentication failed")

        logger.debug("Successfully exchanged authorization code")
        return OAuthTokens.model_validate(payload)
