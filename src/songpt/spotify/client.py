"""Async HTTP client for the Spotify Web API."""

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..exceptions import InvalidArgumentError, NotFoundError, UpstreamUnavailableError
from .auth import fetch_account_access_token, fetch_app_access_token
from .models import SpotifyConfig, SpotifyPlaylist, SpotifyTrack

logger = logging.getLogger(__name__)

PLAYLIST_NAME_MAX_LENGTH = 100
PLAYLIST_DESCRIPTION_MAX_LENGTH = 280
ATTRIBUTION_SUFFIX = " Powered by songpt."
TRACK_URI_PREFIX = "spotify:track:"


def validate_playlist_details(name: str, description: str) -> None:
    """Check playlist name and description limits.

    Raises:
        InvalidArgumentError: If either is empty or too long
    """
    if not name:
        raise InvalidArgumentError("No playlist name supplied.")
    if len(name) > PLAYLIST_NAME_MAX_LENGTH:
        raise InvalidArgumentError(
            f"Playlist name must be {PLAYLIST_NAME_MAX_LENGTH} characters or less."
        )
    if not description:
        raise InvalidArgumentError("No playlist description supplied.")
    if len(description) > PLAYLIST_DESCRIPTION_MAX_LENGTH:
        raise InvalidArgumentError(
            f"Playlist description must be {PLAYLIST_DESCRIPTION_MAX_LENGTH} characters or less."
        )


class SpotifyClient:
    """Async client for the Spotify endpoints songpt needs.

    This client covers:
    - Token exchange (client credentials and refresh token grants)
    - Track search and title resolution
    - Playlist creation with track attachment

    Every call is a single attempt. Transport errors and unexpected response
    shapes become UpstreamUnavailableError; caller input is validated before
    anything is sent.

    Attributes:
        config: SpotifyConfig with endpoint URLs and timeout
        client: httpx.AsyncClient for HTTP requests

    Example:
        >>> async with SpotifyClient() as spotify:
        ...     token = await spotify.get_access_token(credentials)
        ...     track = await spotify.get_track_for_title("Humble Kendrick Lamar", token)
        ...     print(track.id)
    """

    def __init__(
        self,
        config: Optional[SpotifyConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Spotify client.

        Args:
            config: Endpoint configuration (default: public Spotify endpoints)
            http_client: Optional pre-built httpx.AsyncClient (closed with this client)
        """
        self.config = config or SpotifyConfig()
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
        )
        logger.debug(f"Initialized Spotify client for {self.config.api_url}")

    def _build_url(self, path: str) -> str:
        """Build full URL for a Web API path (e.g. "search")."""
        return f"{self.config.api_url.rstrip('/')}/v1/{path}"

    @staticmethod
    def _auth_headers(access_token: str) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {access_token}",
        }

    async def get_access_token(self, credentials: str) -> str:
        """Get an app-scoped access token (client credentials grant)."""
        return await fetch_app_access_token(self.client, self.config, credentials)

    async def get_account_access_token(self, credentials: str, refresh_token: str) -> str:
        """Get an account-scoped access token (refresh token grant)."""
        return await fetch_account_access_token(
            self.client, self.config, credentials, refresh_token
        )

    def _parse_track(self, item: Any) -> Optional[SpotifyTrack]:
        if not isinstance(item, dict):
            return None
        try:
            return SpotifyTrack.from_api(item)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping search item with missing field: {e}")
            return None

    async def search_tracks(self, search_text: str, access_token: str) -> List[SpotifyTrack]:
        """Search the catalog for tracks.

        Args:
            search_text: Free-text query
            access_token: App or account access token

        Returns:
            Matching tracks in Spotify's order (possibly empty)

        Raises:
            InvalidArgumentError: If access_token is empty
            UpstreamUnavailableError: On transport failure or an unexpected response
        """
        if not access_token:
            raise InvalidArgumentError("No Spotify access token supplied.")

        logger.debug(f"Searching Spotify for '{search_text}'")
        try:
            response = await self.client.get(
                self._build_url("search"),
                params={"q": search_text, "type": "track"},
                headers=self._auth_headers(access_token),
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Spotify search for '{search_text}' failed: {e}")
            raise UpstreamUnavailableError(
                "Could not call Spotify API. Make sure you have supplied a valid Spotify Access Token."
            ) from e

        tracks_page = payload.get("tracks") if isinstance(payload, dict) else None
        items = tracks_page.get("items") if isinstance(tracks_page, dict) else None
        if not isinstance(items, list):
            logger.error(
                f"Spotify search response has no tracks.items (status {response.status_code})"
            )
            raise UpstreamUnavailableError(
                "Could not call Spotify API. Make sure you have supplied a valid Spotify Access Token."
            )

        tracks = [track for track in map(self._parse_track, items) if track is not None]
        logger.debug(f"Search for '{search_text}' returned {len(tracks)} tracks")
        return tracks

    async def get_track_for_title(self, title: str, access_token: str) -> SpotifyTrack:
        """Resolve a title to the first matching track.

        Raises:
            NotFoundError: If the search returned no tracks
            InvalidArgumentError: If access_token is empty
            UpstreamUnavailableError: If the search failed
        """
        tracks = await self.search_tracks(title, access_token)
        if not tracks:
            raise NotFoundError(f"Could not find a Spotify track for '{title}'.")
        return tracks[0]

    async def create_playlist(
        self,
        name: str,
        description: str,
        track_ids: Sequence[str],
        public_playlist: bool,
        account_id: str,
        account_access_token: str,
    ) -> SpotifyPlaylist:
        """Create a playlist in the account and attach tracks to it.

        Two requests are sent: create, then add tracks. Only transport
        failure of the second request is reported; its status and body are
        not inspected, so rejected tracks go unnoticed. If the second request
        fails the playlist stays behind, empty.

        Args:
            name: Playlist name (1-100 characters)
            description: Playlist description (1-280 characters)
            track_ids: Spotify track ids in playlist order
            public_playlist: Whether the playlist is public
            account_id: Spotify account (user) id
            account_access_token: Access token for that account

        Returns:
            The created SpotifyPlaylist

        Raises:
            InvalidArgumentError: If any argument is empty or too long
            UpstreamUnavailableError: If either request fails or no playlist id comes back
        """
        validate_playlist_details(name, description)
        if not track_ids:
            raise InvalidArgumentError("No track IDs supplied.")
        if not account_id:
            raise InvalidArgumentError("No Spotify account ID supplied.")
        if not account_access_token:
            raise InvalidArgumentError("No Spotify account access token supplied.")

        headers = self._auth_headers(account_access_token)
        playlists_url = self._build_url(f"users/{quote(account_id, safe='')}/playlists")
        full_description = f"{description}{ATTRIBUTION_SUFFIX}"

        try:
            response = await self.client.post(
                playlists_url,
                headers=headers,
                json={"name": name, "description": full_description, "public": public_playlist},
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Spotify playlist creation failed: {e}")
            raise UpstreamUnavailableError(
                "Could not call Spotify API. Make sure you have supplied a valid Spotify Account Access Token."
            ) from e

        playlist_id = payload.get("id") if isinstance(payload, dict) else None
        if not playlist_id:
            logger.error(f"Spotify returned no playlist id (status {response.status_code})")
            raise UpstreamUnavailableError("Spotify API did not return a playlist ID.")

        logger.info(f"Created Spotify playlist '{name}' ({playlist_id})")

        try:
            response = await self.client.post(
                f"{playlists_url}/{playlist_id}/tracks",
                headers=headers,
                json={"uris": [f"{TRACK_URI_PREFIX}{track_id}" for track_id in track_ids]},
            )
        except httpx.HTTPError as e:
            logger.error(f"Adding tracks to playlist {playlist_id} failed: {e}")
            raise UpstreamUnavailableError(
                "Could not call Spotify API. Make sure you have supplied a valid Spotify Account Access Token."
            ) from e

        logger.debug(f"Add-tracks response status for {playlist_id}: {response.status_code}")
        logger.info(f"Sent {len(track_ids)} tracks to playlist {playlist_id}")

        return SpotifyPlaylist(
            id=playlist_id,
            name=name,
            description=full_description,
            public=public_playlist,
            track_ids=list(track_ids),
        )

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        await self.client.aclose()
        logger.debug("Closed Spotify client")

    async def __aenter__(self) -> "SpotifyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def get_spotify_access_token(spotify_credentials: str) -> str:
    """Retrieve an app access token with the given Basic credentials."""
    async with SpotifyClient() as spotify:
        return await spotify.get_access_token(spotify_credentials)


async def get_spotify_account_access_token(spotify_credentials: str, spotify_refresh_token: str) -> str:
    """Retrieve an access token for the account owning the refresh token."""
    async with SpotifyClient() as spotify:
        return await spotify.get_account_access_token(spotify_credentials, spotify_refresh_token)


async def search_spotify_tracks(search_text: str, access_token: str) -> List[SpotifyTrack]:
    """Search Spotify tracks matching the text."""
    async with SpotifyClient() as spotify:
        return await spotify.search_tracks(search_text, access_token)


async def get_spotify_track_for_title(title: str, access_token: str) -> SpotifyTrack:
    """Retrieve the first Spotify track matching a title."""
    async with SpotifyClient() as spotify:
        return await spotify.get_track_for_title(title, access_token)


async def create_spotify_playlist(
    name: str,
    description: str,
    track_ids: Sequence[str],
    public_playlist: bool,
    spotify_account_id: str,
    spotify_account_access_token: str,
) -> str:
    """Create a populated playlist and return its id."""
    async with SpotifyClient() as spotify:
        playlist = await spotify.create_playlist(
            name,
            description,
            track_ids,
            public_playlist,
            spotify_account_id,
            spotify_account_access_token,
        )
    return playlist.id
