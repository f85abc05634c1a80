"""Spotify access token exchange.

Two grants are used against the accounts service token endpoint, both
authenticated with the application's Basic credentials
(base64 of "client_id:client_secret"):

    - client_credentials: app-level token, enough for catalog search
    - refresh_token: token for the account that owns the refresh token,
      needed to create and populate playlists

Tokens are short-lived and are requested right before use. Nothing is cached
or refreshed here.

Example:
    >>> async with httpx.AsyncClient() as http:
    ...     token = await fetch_app_access_token(http, SpotifyConfig(), credentials)
"""

import base64
import logging
from typing import Dict, Optional

import httpx

from ..exceptions import InvalidArgumentError, UpstreamUnavailableError
from .models import SpotifyConfig

logger = logging.getLogger(__name__)

GRANT_CLIENT_CREDENTIALS = "client_credentials"
GRANT_REFRESH_TOKEN = "refresh_token"


def encode_client_credentials(client_id: str, client_secret: str) -> str:
    """Encode an app's client id and secret as Basic credentials."""
    if not client_id or not client_secret:
        raise InvalidArgumentError("Both client id and client secret are required.")
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def create_token_params(grant_type: str, refresh_token: Optional[str] = None) -> Dict[str, str]:
    """Build the form body for a token request."""
    params = {"grant_type": grant_type}
    if grant_type == GRANT_REFRESH_TOKEN:
        params["refresh_token"] = refresh_token
    return params


async def _request_access_token(
    http: httpx.AsyncClient,
    config: SpotifyConfig,
    credentials: str,
    params: Dict[str, str],
) -> str:
    try:
        response = await http.post(
            config.token_url,
            headers={"Authorization": f"Basic {credentials}"},
            data=params,
        )
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Spotify token request ({params['grant_type']}) failed: {e}")
        raise UpstreamUnavailableError(
            "Could not call Spotify API. Make sure your credentials are valid."
        ) from e

    access_token = payload.get("access_token") if isinstance(payload, dict) else None
    if not access_token:
        reason = None
        if isinstance(payload, dict):
            reason = payload.get("error_description") or payload.get("error")
        logger.error(
            f"Spotify token response ({params['grant_type']}) has no access_token "
            f"(status {response.status_code}, reason: {reason})"
        )
        raise UpstreamUnavailableError(
            "Spotify did not return an access token. Make sure your credentials are valid."
        )

    logger.debug(f"Obtained Spotify access token via {params['grant_type']}")
    return access_token


async def fetch_app_access_token(
    http: httpx.AsyncClient, config: SpotifyConfig, credentials: str
) -> str:
    """Exchange app credentials for an app-scoped access token.

    Args:
        http: HTTP client to send the request with
        config: Spotify endpoint configuration
        credentials: Basic credentials (base64 "client_id:client_secret")

    Returns:
        Access token string

    Raises:
        InvalidArgumentError: If credentials are empty
        UpstreamUnavailableError: On transport failure or a response without a token
    """
    if not credentials:
        raise InvalidArgumentError("No Spotify credentials supplied.")

    return await _request_access_token(
        http, config, credentials, create_token_params(GRANT_CLIENT_CREDENTIALS)
    )


async def fetch_account_access_token(
    http: httpx.AsyncClient, config: SpotifyConfig, credentials: str, refresh_token: str
) -> str:
    """Exchange a refresh token for an account-scoped access token.

    Raises:
        InvalidArgumentError: If credentials or refresh_token are empty
        UpstreamUnavailableError: On transport failure or a response without a token
    """
    if not credentials:
        raise InvalidArgumentError("No Spotify credentials supplied.")
    if not refresh_token:
        raise InvalidArgumentError("No Spotify refresh token supplied.")

    return await _request_access_token(
        http, config, credentials, create_token_params(GRANT_REFRESH_TOKEN, refresh_token)
    )
