"""
Playlist Pipeline - Suggestion to Spotify playlist orchestration

Chains the OpenAI suggestion call and the Spotify calls into one run:

    1. App access token (client credentials)
    2. Account access token (refresh token)
    3. Song suggestions from seed songs or keywords
    4. Title resolution, batched, failures skipped
    5. Abort when nothing resolved
    6. Playlist creation in the account, returning its id

Every step but 4 short-circuits: its error propagates unchanged. In step 4
each title resolves to an independent Result and failed titles are dropped.
A playlist that was created but whose tracks could not be attached is left
in place.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from .config import DEFAULT_MAX_PARALLEL_LOOKUPS, SongptConfig
from .exceptions import InvalidArgumentError, NoResolvableTracksError
from .openai_client import (
    DEFAULT_GPT_MODEL,
    DEFAULT_NUMBER_OF_SUGGESTIONS,
    generate_suggestions_based_on_keywords,
    generate_suggestions_based_on_songs,
)
from .result import Result, capture, partition
from .spotify.client import SpotifyClient, validate_playlist_details
from .spotify.models import SpotifyConfig, SpotifyTrack

logger = logging.getLogger(__name__)


class PlaylistPipeline:
    """Generate Spotify playlists from OpenAI song suggestions.

    Example:
        >>> pipeline = PlaylistPipeline.from_config(SongptConfig.from_environment())
        >>> playlist_id = await pipeline.generate_from_keywords(
        ...     "Witcher 3", "Songs for the road to Novigrad.", "The video game The Witcher 3"
        ... )
    """

    def __init__(
        self,
        openai_api_key: str,
        spotify_credentials: str,
        spotify_refresh_token: str,
        spotify_account_id: str,
        number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
        gpt_model: str = DEFAULT_GPT_MODEL,
        public_playlist: bool = True,
        max_parallel_lookups: int = DEFAULT_MAX_PARALLEL_LOOKUPS,
        spotify_config: Optional[SpotifyConfig] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            openai_api_key: OpenAI API key
            spotify_credentials: Spotify Basic credentials
            spotify_refresh_token: Refresh token of the account receiving the playlist
            spotify_account_id: Spotify user id of that account
            number_of_suggestions: Songs to ask OpenAI for
            gpt_model: Chat model to use
            public_playlist: Whether created playlists are public
            max_parallel_lookups: Titles resolved concurrently per batch
            spotify_config: Optional Spotify endpoint configuration

        Raises:
            InvalidArgumentError: If max_parallel_lookups < 1
        """
        if max_parallel_lookups < 1:
            raise InvalidArgumentError("max_parallel_lookups must be at least 1.")

        self.openai_api_key = openai_api_key
        self.spotify_credentials = spotify_credentials
        self.spotify_refresh_token = spotify_refresh_token
        self.spotify_account_id = spotify_account_id
        self.number_of_suggestions = number_of_suggestions
        self.gpt_model = gpt_model
        self.public_playlist = public_playlist
        self.max_parallel_lookups = max_parallel_lookups
        self.spotify_config = spotify_config

    @classmethod
    def from_config(
        cls, config: SongptConfig, spotify_config: Optional[SpotifyConfig] = None
    ) -> "PlaylistPipeline":
        """Build a pipeline from environment configuration."""
        config.validate()
        return cls(
            openai_api_key=config.openai_api_key,
            spotify_credentials=config.spotify_credentials,
            spotify_refresh_token=config.spotify_refresh_token,
            spotify_account_id=config.spotify_account_id,
            number_of_suggestions=config.number_of_suggestions,
            gpt_model=config.gpt_model,
            public_playlist=config.public_playlist,
            max_parallel_lookups=config.max_parallel_lookups,
            spotify_config=spotify_config,
        )

    async def generate_from_songs(
        self, playlist_name: str, playlist_description: str, song_titles: Sequence[str]
    ) -> str:
        """Create a playlist of songs similar to the seed songs; return its id."""
        if not song_titles:
            raise InvalidArgumentError("No song titles supplied.")

        return await self._generate(
            playlist_name,
            playlist_description,
            lambda: generate_suggestions_based_on_songs(
                self.openai_api_key, song_titles, self.number_of_suggestions, self.gpt_model
            ),
        )

    async def generate_from_keywords(
        self, playlist_name: str, playlist_description: str, keywords: str
    ) -> str:
        """Create a playlist of songs fitting the keywords; return its id."""
        if not keywords:
            raise InvalidArgumentError("No keywords supplied.")

        return await self._generate(
            playlist_name,
            playlist_description,
            lambda: generate_suggestions_based_on_keywords(
                self.openai_api_key, keywords, self.number_of_suggestions, self.gpt_model
            ),
        )

    async def _generate(
        self,
        playlist_name: str,
        playlist_description: str,
        suggest: Callable[[], Awaitable[List[str]]],
    ) -> str:
        validate_playlist_details(playlist_name, playlist_description)

        spotify = SpotifyClient(self.spotify_config)
        try:
            access_token = await spotify.get_access_token(self.spotify_credentials)
            account_access_token = await spotify.get_account_access_token(
                self.spotify_credentials, self.spotify_refresh_token
            )

            suggestions = await suggest()
            logger.info(f"Resolving {len(suggestions)} suggestions for '{playlist_name}'")

            track_ids = await self.resolve_track_ids(spotify, suggestions, access_token)
            if not track_ids:
                raise NoResolvableTracksError(
                    f"None of the {len(suggestions)} suggested songs could be found on Spotify."
                )

            playlist = await spotify.create_playlist(
                playlist_name,
                playlist_description,
                track_ids,
                self.public_playlist,
                self.spotify_account_id,
                account_access_token,
            )
        finally:
            await spotify.close()

        logger.info(f"Playlist ready with {len(track_ids)} tracks: {playlist.url}")
        return playlist.id

    async def resolve_track_ids(
        self, spotify: SpotifyClient, titles: Sequence[str], access_token: str
    ) -> List[str]:
        """
        Resolve titles to Spotify track ids, skipping titles that fail.

        Titles are looked up in batches of max_parallel_lookups. The returned
        ids follow the order of titles, whatever order the lookups finish in.

        Args:
            spotify: Client used for the searches
            titles: Suggested "Title Artist" strings
            access_token: App access token

        Returns:
            Track ids of the titles that resolved
        """
        results: List[Result[SpotifyTrack]] = []
        for batch_start in range(0, len(titles), self.max_parallel_lookups):
            batch = titles[batch_start:batch_start + self.max_parallel_lookups]
            results.extend(
                await asyncio.gather(
                    *(capture(spotify.get_track_for_title(title, access_token)) for title in batch)
                )
            )

        for title, result in zip(titles, results):
            if result.ok:
                logger.debug(f"Resolved '{title}' to {result.value.display_title} ({result.value.id})")
            else:
                logger.info(f"Skipping '{title}': {result.error}")

        tracks, errors = partition(results)
        if errors:
            logger.info(f"Resolved {len(tracks)} of {len(titles)} suggestions")
        return [track.id for track in tracks]


async def generate_playlist_based_on_songs(
    openai_api_key: str,
    spotify_credentials: str,
    spotify_refresh_token: str,
    spotify_account_id: str,
    playlist_name: str,
    playlist_description: str,
    song_titles: Sequence[str],
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
    gpt_model: str = DEFAULT_GPT_MODEL,
    public_playlist: bool = True,
    max_parallel_lookups: int = DEFAULT_MAX_PARALLEL_LOOKUPS,
) -> str:
    """
    Generate a Spotify playlist of songs similar to the given songs.

    Returns:
        The created playlist id

    Raises:
        InvalidArgumentError: If an argument is empty or out of range
        UpstreamUnavailableError: If OpenAI or Spotify cannot be reached
        UpstreamMalformedPayloadError: If OpenAI's answer is not a JSON array
        NoResolvableTracksError: If no suggestion matched a Spotify track
    """
    pipeline = PlaylistPipeline(
        openai_api_key,
        spotify_credentials,
        spotify_refresh_token,
        spotify_account_id,
        number_of_suggestions=number_of_suggestions,
        gpt_model=gpt_model,
        public_playlist=public_playlist,
        max_parallel_lookups=max_parallel_lookups,
    )
    return await pipeline.generate_from_songs(playlist_name, playlist_description, song_titles)


async def generate_playlist_based_on_keywords(
    openai_api_key: str,
    spotify_credentials: str,
    spotify_refresh_token: str,
    spotify_account_id: str,
    playlist_name: str,
    playlist_description: str,
    keywords: str,
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS,
    gpt_model: str = DEFAULT_GPT_MODEL,
    public_playlist: bool = True,
    max_parallel_lookups: int = DEFAULT_MAX_PARALLEL_LOOKUPS,
) -> str:
    """Generate a Spotify playlist of songs fitting the keywords; see
    generate_playlist_based_on_songs for errors."""
    pipeline = PlaylistPipeline(
        openai_api_key,
        spotify_credentials,
        spotify_refresh_token,
        spotify_account_id,
        number_of_suggestions=number_of_suggestions,
        gpt_model=gpt_model,
        public_playlist=public_playlist,
        max_parallel_lookups=max_parallel_lookups,
    )
    return await pipeline.generate_from_keywords(playlist_name, playlist_description, keywords)
