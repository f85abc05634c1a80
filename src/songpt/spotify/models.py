"""Data models for Spotify Web API integration."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PLAYLIST_URL_TEMPLATE = "https://open.spotify.com/playlist/{playlist_id}"


def playlist_url(playlist_id: str) -> str:
    """Return the shareable open.spotify.com URL for a playlist id."""
    return PLAYLIST_URL_TEMPLATE.format(playlist_id=playlist_id)


@dataclass
class SpotifyConfig:
    """Endpoints and transport settings for the Spotify Web API.

    Attributes:
        accounts_url: Base URL of the accounts service (token endpoint)
        api_url: Base URL of the Web API
        timeout: Request timeout in seconds
    """

    accounts_url: str = "https://accounts.spotify.com"
    api_url: str = "https://api.spotify.com"
    timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration on initialization."""
        for name in ("accounts_url", "api_url"):
            value = getattr(self, name)
            if not value or not value.startswith(("http://", "https://")):
                raise ValueError(f"{name} must be a valid HTTP/HTTPS URL")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def token_url(self) -> str:
        return f"{self.accounts_url.rstrip('/')}/api/token"


@dataclass
class SpotifyTrack:
    """Track item from a Spotify search response.

    Attributes:
        id: Spotify track id
        name: Track name
        artists: Artist names in credit order
        album: Album name (optional)
        uri: Spotify URI, e.g. "spotify:track:<id>"
        duration_ms: Duration in milliseconds (optional)
        external_url: open.spotify.com link (optional)
    """

    id: str
    name: str
    artists: List[str] = field(default_factory=list)
    album: Optional[str] = None
    uri: Optional[str] = None
    duration_ms: Optional[int] = None
    external_url: Optional[str] = None

    @property
    def display_title(self) -> str:
        if not self.artists:
            return self.name
        return f"{self.name} {', '.join(self.artists)}"

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "SpotifyTrack":
        """Build a track from a raw search item.

        Raises:
            KeyError: If id or name is missing
            TypeError: If id is not a non-empty string
        """
        track_id = item["id"]
        if not isinstance(track_id, str) or not track_id:
            raise TypeError(f"track id must be a non-empty string, got {track_id!r}")
        return cls(
            id=track_id,
            name=item["name"],
            artists=[a["name"] for a in item.get("artists") or [] if a.get("name")],
            album=(item.get("album") or {}).get("name"),
            uri=item.get("uri"),
            duration_ms=item.get("duration_ms"),
            external_url=(item.get("external_urls") or {}).get("spotify"),
        )


@dataclass
class SpotifyPlaylist:
    """Playlist created by the client.

    Attributes:
        id: Spotify playlist id
        name: Playlist name
        description: Description as sent to Spotify (with attribution)
        public: Whether the playlist is public
        track_ids: Attached track ids in order
    """

    id: str
    name: str
    description: str
    public: bool
    track_ids: List[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return playlist_url(self.id)
