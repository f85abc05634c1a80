"""Spotify Web API client for track lookup and playlist creation."""

from .auth import (
    create_token_params,
    encode_client_credentials,
    fetch_account_access_token,
    fetch_app_access_token,
)
from .client import (
    SpotifyClient,
    create_spotify_playlist,
    get_spotify_access_token,
    get_spotify_account_access_token,
    get_spotify_track_for_title,
    search_spotify_tracks,
)
from .models import SpotifyConfig, SpotifyPlaylist, SpotifyTrack, playlist_url

__all__ = [
    # Client
    "SpotifyClient",
    "get_spotify_access_token",
    "get_spotify_account_access_token",
    "search_spotify_tracks",
    "get_spotify_track_for_title",
    "create_spotify_playlist",
    # Models
    "SpotifyConfig",
    "SpotifyTrack",
    "SpotifyPlaylist",
    "playlist_url",
    # Authentication
    "encode_client_credentials",
    "create_token_params",
    "fetch_app_access_token",
    "fetch_account_access_token",
]
