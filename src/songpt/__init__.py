"""songpt - AI-suggested Spotify playlists

Asks OpenAI for songs that fit a set of seed songs or a keyword phrase,
looks them up on Spotify and saves the matches as a playlist.
"""

from .config import SongptConfig
from .exceptions import (
    InvalidArgumentError,
    NoResolvableTracksError,
    NotFoundError,
    SongptError,
    UpstreamMalformedPayloadError,
    UpstreamUnavailableError,
)
from .openai_client import (
    generate_suggestions_based_on_keywords,
    generate_suggestions_based_on_songs,
)
from .pipeline import (
    PlaylistPipeline,
    generate_playlist_based_on_keywords,
    generate_playlist_based_on_songs,
)
from .spotify import (
    create_spotify_playlist,
    get_spotify_access_token,
    get_spotify_account_access_token,
    get_spotify_track_for_title,
    playlist_url,
    search_spotify_tracks,
)

__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "generate_playlist_based_on_songs",
    "generate_playlist_based_on_keywords",
    "PlaylistPipeline",
    # Suggestions
    "generate_suggestions_based_on_songs",
    "generate_suggestions_based_on_keywords",
    # Spotify
    "get_spotify_access_token",
    "get_spotify_account_access_token",
    "search_spotify_tracks",
    "get_spotify_track_for_title",
    "create_spotify_playlist",
    "playlist_url",
    # Configuration
    "SongptConfig",
    # Exceptions
    "SongptError",
    "InvalidArgumentError",
    "UpstreamUnavailableError",
    "UpstreamMalformedPayloadError",
    "NotFoundError",
    "NoResolvableTracksError",
]
