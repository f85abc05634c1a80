"""Configuration management for songpt.

This module handles environment variable validation and configuration loading.
All configuration is read from environment variables (NO .env files).
"""
import os
from dataclasses import dataclass
from typing import Optional

from .openai_client import DEFAULT_GPT_MODEL, DEFAULT_NUMBER_OF_SUGGESTIONS
from .spotify.auth import encode_client_credentials

DEFAULT_MAX_PARALLEL_LOOKUPS = 5

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class SongptConfig:
    """Configuration for playlist generation (reads from environment)."""

    # Required: OpenAI
    openai_api_key: str

    # Required: Spotify
    spotify_credentials: str
    spotify_refresh_token: str
    spotify_account_id: str

    # Optional: generation
    gpt_model: str = DEFAULT_GPT_MODEL
    number_of_suggestions: int = DEFAULT_NUMBER_OF_SUGGESTIONS
    max_parallel_lookups: int = DEFAULT_MAX_PARALLEL_LOOKUPS
    public_playlist: bool = True

    @classmethod
    def from_environment(cls) -> 'SongptConfig':
        """Load configuration from environment variables (NO .env files).

        SPOTIFY_CREDENTIALS holds the Basic credentials directly. When it is
        unset, SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET are encoded instead.

        Returns:
            SongptConfig: Loaded configuration object

        Raises:
            EnvironmentError: If required environment variables are missing
            ValueError: If a numeric variable is not a number
        """
        credentials = os.getenv('SPOTIFY_CREDENTIALS')
        client_id = os.getenv('SPOTIFY_CLIENT_ID')
        client_secret = os.getenv('SPOTIFY_CLIENT_SECRET')
        if not credentials and client_id and client_secret:
            credentials = encode_client_credentials(client_id, client_secret)

        required = {
            'OPENAI_KEY': os.getenv('OPENAI_KEY') or os.getenv('OPENAI_API_KEY'),
            'SPOTIFY_CREDENTIALS': credentials,
            'SPOTIFY_REFRESH_TOKEN': os.getenv('SPOTIFY_REFRESH_TOKEN'),
            'SPOTIFY_ACCOUNT_ID': os.getenv('SPOTIFY_ACCOUNT_ID'),
        }

        missing = [var for var, value in required.items() if not value]
        if missing:
            raise EnvironmentError(
                f"Required environment variables missing: {', '.join(missing)}\n"
                f"These variables must be set in your shell environment (NOT in .env files).\n"
                f"Example: export SPOTIFY_ACCOUNT_ID='your-spotify-user-id'"
            )

        return cls(
            openai_api_key=required['OPENAI_KEY'],
            spotify_credentials=required['SPOTIFY_CREDENTIALS'],
            spotify_refresh_token=required['SPOTIFY_REFRESH_TOKEN'],
            spotify_account_id=required['SPOTIFY_ACCOUNT_ID'],
            gpt_model=os.getenv('OPENAI_MODEL') or DEFAULT_GPT_MODEL,
            number_of_suggestions=int(
                os.getenv('SONGPT_SUGGESTION_COUNT', str(DEFAULT_NUMBER_OF_SUGGESTIONS))
            ),
            max_parallel_lookups=int(
                os.getenv('SONGPT_MAX_PARALLEL_LOOKUPS', str(DEFAULT_MAX_PARALLEL_LOOKUPS))
            ),
            public_playlist=_parse_bool(os.getenv('SONGPT_PUBLIC_PLAYLIST'), default=True),
        )

    def validate(self) -> None:
        """Validate generation settings.

        Raises:
            ValueError: If a setting is out of range
        """
        if self.number_of_suggestions < 1:
            raise ValueError(
                f"Invalid number_of_suggestions: {self.number_of_suggestions}. Must be >= 1"
            )
        if self.max_parallel_lookups < 1:
            raise ValueError(
                f"Invalid max_parallel_lookups: {self.max_parallel_lookups}. Must be >= 1"
            )
        if not self.gpt_model:
            raise ValueError("gpt_model must not be empty")

    def __repr__(self) -> str:
        """Return string representation with sensitive data masked."""
        return (
            f"SongptConfig("
            f"openai_api_key='***', "
            f"spotify_credentials='***', "
            f"spotify_refresh_token='***', "
            f"spotify_account_id='{self.spotify_account_id}', "
            f"gpt_model='{self.gpt_model}', "
            f"number_of_suggestions={self.number_of_suggestions}, "
            f"max_parallel_lookups={self.max_parallel_lookups}, "
            f"public_playlist={self.public_playlist}"
            f")"
        )


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in _TRUE_VALUES
