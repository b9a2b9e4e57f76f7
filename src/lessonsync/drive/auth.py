"""OAuth refresh-token exchange for the Drive API."""

from __future__ import annotations

import logging

import httpx

from lessonsync.core.errors import (
    ProtocolError,
    TransferError,
    TransportError,
    describe_exception,
)
from lessonsync.core.types import AccessToken, OAuthCredentials

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"

STEP = "request-access-token"


class TokenProvider:
    """Exchanges a refresh token for a short-lived access token.

    Tokens are not cached; callers keep the returned token for the run.
    """

    def __init__(self, client: httpx.Client, token_url: str = TOKEN_URL) -> None:
        """Initialize the token provider.

        Args:
            client: HTTP client used for the exchange.
            token_url: OAuth token endpoint.
        """
        self._client = client
        self._token_url = token_url

    def request_access_token(self, credentials: OAuthCredentials) -> AccessToken:
        """Perform one token exchange request.

        Args:
            credentials: OAuth client and refresh token.

        Returns:
            The access token.

        Raises:
            TransportError: If the request fails or returns an error status.
            ProtocolError: If the response has no access_token.
        """
        try:
            response = self._client.post(
                self._token_url,
                data={
                    "client_id": credentials.client_id,
                    "client_secret": credentials.client_secret,
                    "refresh_token": credentials.refresh_token,
                    "grant_type": "refresh_token",
                },
            )
            if not response.is_success:
                raise TransportError.from_response(
                    STEP, "Failed to exchange refresh token", response
                )

            payload = response.json()
            value = payload.get("access_token") if isinstance(payload, dict) else None
            if not value:
                raise ProtocolError(STEP, "Token response does not include access_token")
        except TransferError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError(STEP, describe_exception(e)) from e

        expires_in = payload.get("expires_in")
        if not isinstance(expires_in, int):
            expires_in = None

        if expires_in is None:
            logger.info(f"[{STEP}] Obtained OAuth access token")
        else:
            logger.info(f"[{STEP}] Obtained OAuth access token (expires in {expires_in}s)")
        return AccessToken(value=value, expires_in=expires_in)
