#!/usr/bin/env python3
"""Real service smoke test for songpt.

Creates two playlists in the configured Spotify account, one from seed songs
and one from keywords, and prints their URLs. This talks to the real OpenAI
and Spotify APIs and leaves the playlists behind.

Usage:
    export OPENAI_KEY="sk-..."
    export SPOTIFY_CREDENTIALS="base64(client_id:client_secret)"
    export SPOTIFY_REFRESH_TOKEN="..."
    export SPOTIFY_ACCOUNT_ID="your-spotify-user-id"
    export SONGPT_LOG_LEVEL="debug"  # Optional
    python scripts/tryout.py

Exit Codes:
    0: Both playlists were created
    1: A run failed
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.logger import setup_logging
from src.songpt import PlaylistPipeline, SongptConfig, SongptError, playlist_url

logger = logging.getLogger("tryout")


async def run(pipeline: PlaylistPipeline) -> None:
    playlist_id = await pipeline.generate_from_songs(
        "Test Playlist - Post Malone and Kendrick Lamar",
        "This is an AI-generated playlist based on Post Malone and Kendrick Lamar.",
        ["Circles Post Malone", "Humble Kendrick Lamar", "Congratulation Post Malone"],
    )
    print("Created a Spotify playlist:")
    print(playlist_url(playlist_id))

    playlist_id = await pipeline.generate_from_keywords(
        "Test Playlist - Witcher 3",
        "This is an AI-generated playlist based on The Witcher 3.",
        "The video game The Witcher 3",
    )
    print("Created a Spotify playlist:")
    print(playlist_url(playlist_id))


def main() -> int:
    setup_logging()

    try:
        config = SongptConfig.from_environment()
    except EnvironmentError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Loaded {config!r}")

    try:
        asyncio.run(run(PlaylistPipeline.from_config(config)))
    except SongptError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
