"""Tests for the playlist pipeline.

Spotify and OpenAI collaborators are mocked. Covers step ordering, the
skip-on-failure resolution step, ordering under concurrent lookups, error
propagation and an end-to-end run through the real clients with mocked HTTP.
"""
import asyncio
import json
from typing import Dict, List
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from pytest_mock import MockerFixture

from src.songpt.config import SongptConfig
from src.songpt.exceptions import (
    InvalidArgumentError,
    NoResolvableTracksError,
    NotFoundError,
    UpstreamMalformedPayloadError,
    UpstreamUnavailableError,
)
from src.songpt.pipeline import (
    PlaylistPipeline,
    generate_playlist_based_on_keywords,
    generate_playlist_based_on_songs,
)
from src.songpt.spotify.client import SpotifyClient
from src.songpt.spotify.models import SpotifyPlaylist, SpotifyTrack

CREDENTIALS = dict(
    openai_api_key="sk-test",
    spotify_credentials="Y3JlZHM=",
    spotify_refresh_token="refresh-123",
    spotify_account_id="user-1",
)


def make_spotify(mocker: MockerFixture, catalog: Dict[str, str]):
    """Create a mocked SpotifyClient resolving titles found in catalog."""
    spotify = mocker.MagicMock(spec=SpotifyClient)
    spotify.get_access_token = AsyncMock(return_value="app-token")
    spotify.get_account_access_token = AsyncMock(return_value="account-token")

    async def get_track_for_title(title, access_token):
        if title not in catalog:
            raise NotFoundError(f"Could not find a Spotify track for '{title}'.")
        return SpotifyTrack(id=catalog[title], name=title)

    async def create_playlist(name, description, track_ids, public_playlist, account_id, token):
        return SpotifyPlaylist(
            id="playlist-xyz", name=name, description=description,
            public=public_playlist, track_ids=list(track_ids),
        )

    spotify.get_track_for_title = AsyncMock(side_effect=get_track_for_title)
    spotify.create_playlist = AsyncMock(side_effect=create_playlist)
    spotify.close = AsyncMock()
    return spotify


@pytest.fixture
def patch_pipeline(mocker: MockerFixture):
    """Patch SpotifyClient and the suggestion helpers in the pipeline module."""

    def _patch(suggestions, catalog):
        spotify = make_spotify(mocker, catalog)
        spotify_cls = mocker.patch("src.songpt.pipeline.SpotifyClient", return_value=spotify)
        songs = mocker.patch(
            "src.songpt.pipeline.generate_suggestions_based_on_songs",
            new_callable=AsyncMock, return_value=suggestions,
        )
        keywords = mocker.patch(
            "src.songpt.pipeline.generate_suggestions_based_on_keywords",
            new_callable=AsyncMock, return_value=suggestions,
        )
        return Mock(spotify=spotify, spotify_cls=spotify_cls, songs=songs, keywords=keywords)

    return _patch


class TestGenerateFromSongs:

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, patch_pipeline):
        mocks = patch_pipeline(["A", "B"], {"A": "id-a", "B": "id-b"})
        pipeline = PlaylistPipeline(**CREDENTIALS, number_of_suggestions=2, gpt_model="gpt-4o-mini")

        playlist_id = await pipeline.generate_from_songs("Name", "Desc", ["Seed 1"])

        assert playlist_id == "playlist-xyz"
        mocks.spotify.get_access_token.assert_awaited_once_with("Y3JlZHM=")
        mocks.spotify.get_account_access_token.assert_awaited_once_with("Y3JlZHM=", "refresh-123")
        mocks.songs.assert_awaited_once_with("sk-test", ["Seed 1"], 2, "gpt-4o-mini")
        for call in mocks.spotify.get_track_for_title.call_args_list:
            assert call.args[1] == "app-token"
        mocks.spotify.create_playlist.assert_awaited_once_with(
            "Name", "Desc", ["id-a", "id-b"], True, "user-1", "account-token"
        )
        mocks.spotify.close.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "resolvable",
        [
            ["S1", "S2", "S3", "S4", "S5"],
            ["S1", "S3", "S5"],
            ["S2", "S4"],
            ["S5"],
        ],
    )
    async def test_playlist_has_resolved_tracks_in_suggestion_order(self, patch_pipeline, resolvable):
        suggestions = ["S1", "S2", "S3", "S4", "S5"]
        catalog = {title: f"id-{title}" for title in resolvable}
        mocks = patch_pipeline(suggestions, catalog)
        pipeline = PlaylistPipeline(**CREDENTIALS, max_parallel_lookups=2)

        await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        track_ids = mocks.spotify.create_playlist.call_args.args[2]
        assert track_ids == [f"id-{title}" for title in suggestions if title in resolvable]
        assert mocks.spotify.get_track_for_title.await_count == len(suggestions)

    @pytest.mark.asyncio
    async def test_no_resolvable_tracks(self, patch_pipeline):
        mocks = patch_pipeline(["Unknown 1", "Unknown 2"], {})
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(NoResolvableTracksError):
            await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        mocks.spotify.create_playlist.assert_not_awaited()
        mocks.spotify.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_suggestion_list_is_no_resolvable_tracks(self, patch_pipeline):
        mocks = patch_pipeline([], {})
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(NoResolvableTracksError):
            await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        mocks.spotify.create_playlist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_any_resolution_error_is_skipped(self, patch_pipeline):
        mocks = patch_pipeline(["Good", "Flaky", "Missing"], {"Good": "id-good"})
        original = mocks.spotify.get_track_for_title.side_effect

        async def flaky(title, access_token):
            if title == "Flaky":
                raise UpstreamUnavailableError("timeout")
            return await original(title, access_token)

        mocks.spotify.get_track_for_title.side_effect = flaky
        pipeline = PlaylistPipeline(**CREDENTIALS)

        playlist_id = await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        assert playlist_id == "playlist-xyz"
        assert mocks.spotify.create_playlist.call_args.args[2] == ["id-good"]

    @pytest.mark.asyncio
    async def test_token_failure_propagates_before_suggestions(self, patch_pipeline):
        mocks = patch_pipeline(["A"], {"A": "id-a"})
        mocks.spotify.get_access_token.side_effect = UpstreamUnavailableError("accounts down")
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(UpstreamUnavailableError, match="accounts down"):
            await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        mocks.songs.assert_not_awaited()
        mocks.spotify.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_suggestions_propagate(self, patch_pipeline):
        mocks = patch_pipeline(["A"], {"A": "id-a"})
        mocks.songs.side_effect = UpstreamMalformedPayloadError("not json")
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(UpstreamMalformedPayloadError):
            await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

        mocks.spotify.get_track_for_title.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_failure_propagates(self, patch_pipeline):
        mocks = patch_pipeline(["A"], {"A": "id-a"})
        mocks.spotify.create_playlist.side_effect = UpstreamUnavailableError("no playlist id")
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(UpstreamUnavailableError, match="no playlist id"):
            await pipeline.generate_from_songs("Name", "Desc", ["Seed"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,description",
        [("n" * 101, "desc"), ("name", "d" * 281), ("", "desc"), ("name", "")],
    )
    async def test_invalid_playlist_details_rejected_before_any_call(self, patch_pipeline, name, description):
        mocks = patch_pipeline(["A"], {"A": "id-a"})
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(InvalidArgumentError):
            await pipeline.generate_from_songs(name, description, ["Seed"])

        mocks.spotify_cls.assert_not_called()
        mocks.songs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_seed_list_rejected(self, patch_pipeline):
        mocks = patch_pipeline(["A"], {"A": "id-a"})
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(InvalidArgumentError):
            await pipeline.generate_from_songs("Name", "Desc", [])

        mocks.spotify_cls.assert_not_called()


class TestGenerateFromKeywords:

    @pytest.mark.asyncio
    async def test_uses_keywords_as_basis(self, patch_pipeline):
        mocks = patch_pipeline(["A", "B"], {"B": "id-b"})
        pipeline = PlaylistPipeline(**CREDENTIALS, public_playlist=False)

        playlist_id = await pipeline.generate_from_keywords("Witcher", "Desc", "The Witcher 3")

        assert playlist_id == "playlist-xyz"
        mocks.keywords.assert_awaited_once_with("sk-test", "The Witcher 3", 10, "gpt-3.5-turbo")
        mocks.songs.assert_not_awaited()
        assert mocks.spotify.create_playlist.call_args.args[2:4] == (["id-b"], False)

    @pytest.mark.asyncio
    async def test_empty_keywords_rejected(self, patch_pipeline):
        patch_pipeline(["A"], {"A": "id-a"})
        pipeline = PlaylistPipeline(**CREDENTIALS)

        with pytest.raises(InvalidArgumentError):
            await pipeline.generate_from_keywords("Name", "Desc", "")

    @pytest.mark.asyncio
    async def test_module_function(self, patch_pipeline):
        mocks = patch_pipeline(["A"], {"A": "id-a"})

        playlist_id = await generate_playlist_based_on_keywords(
            "sk-test", "Y3JlZHM=", "refresh-123", "user-1", "Name", "Desc", "lofi beats",
        )

        assert playlist_id == "playlist-xyz"
        mocks.keywords.assert_awaited_once()


class TestResolveTrackIds:

    @pytest.mark.asyncio
    async def test_order_follows_titles_not_completion(self, mocker: MockerFixture):
        titles = [f"T{i}" for i in range(7)]
        delays = {title: 0.01 * (7 - i) for i, title in enumerate(titles)}
        in_flight = {"now": 0, "max": 0}
        finished: List[str] = []

        async def get_track_for_title(title, access_token):
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
            await asyncio.sleep(delays[title])
            in_flight["now"] -= 1
            finished.append(title)
            if title == "T3":
                raise NotFoundError("no match")
            return SpotifyTrack(id=f"id-{title}", name=title)

        spotify = mocker.MagicMock(spec=SpotifyClient)
        spotify.get_track_for_title = AsyncMock(side_effect=get_track_for_title)
        pipeline = PlaylistPipeline(**CREDENTIALS, max_parallel_lookups=3)

        track_ids = await pipeline.resolve_track_ids(spotify, titles, "app-token")

        assert track_ids == [f"id-{t}" for t in titles if t != "T3"]
        assert finished != titles
        assert in_flight["max"] <= 3

    @pytest.mark.asyncio
    async def test_malformed_search_body_skips_only_that_title(self, mocker: MockerFixture):
        bodies = {
            "Good": {"tracks": {"items": [{"id": "id-good", "name": "Good"}]}},
            "Bad": {"tracks": ["x"]},
            "Worse": {"tracks": "oops"},
            "Also Good": {"tracks": {"items": [{"id": "id-also", "name": "Also Good"}]}},
        }

        async def get(url, **kwargs):
            body = bodies[kwargs["params"]["q"]]
            return httpx.Response(200, json=body, request=httpx.Request("GET", url))

        http = mocker.MagicMock(spec=httpx.AsyncClient)
        http.get = AsyncMock(side_effect=get)
        spotify = SpotifyClient(http_client=http)
        pipeline = PlaylistPipeline(**CREDENTIALS, max_parallel_lookups=4)

        track_ids = await pipeline.resolve_track_ids(
            spotify, ["Good", "Bad", "Worse", "Also Good"], "app-token"
        )

        assert track_ids == ["id-good", "id-also"]
        assert http.get.await_count == 4

    def test_max_parallel_lookups_must_be_positive(self):
        with pytest.raises(InvalidArgumentError):
            PlaylistPipeline(**CREDENTIALS, max_parallel_lookups=0)

    def test_from_config(self):
        config = SongptConfig(
            openai_api_key="sk-test",
            spotify_credentials="creds",
            spotify_refresh_token="refresh",
            spotify_account_id="user",
            gpt_model="gpt-4o",
            number_of_suggestions=15,
            max_parallel_lookups=2,
            public_playlist=False,
        )

        pipeline = PlaylistPipeline.from_config(config)

        assert pipeline.openai_api_key == "sk-test"
        assert pipeline.gpt_model == "gpt-4o"
        assert pipeline.number_of_suggestions == 15
        assert pipeline.max_parallel_lookups == 2
        assert pipeline.public_playlist is False


class TestEndToEnd:
    """Full run through the real clients with HTTP and OpenAI mocked."""

    @pytest.fixture
    def http(self, mocker: MockerFixture):
        http = mocker.MagicMock(spec=httpx.AsyncClient)
        http.requests = []

        async def post(url, **kwargs):
            http.requests.append(("POST", url, kwargs))
            request = httpx.Request("POST", url)
            if url.endswith("/api/token"):
                grant = kwargs["data"]["grant_type"]
                token = "app-token" if grant == "client_credentials" else "account-token"
                return httpx.Response(200, json={"access_token": token}, request=request)
            if url.endswith("/playlists"):
                return httpx.Response(201, json={"id": "5Rrf7mqN8uus2AaQQQNdc1"}, request=request)
            return httpx.Response(201, json={"snapshot_id": "snap"}, request=request)

        catalog = {
            "Sunflower Post Malone": {"id": "0RiRZpuVRbi7oqRdSMwhQY", "name": "Sunflower"},
            "DNA Kendrick Lamar": {"id": "6HZILIRieu8S0iqY8kIKhj", "name": "DNA."},
        }

        async def get(url, **kwargs):
            http.requests.append(("GET", url, kwargs))
            item = catalog.get(kwargs["params"]["q"])
            items = [item] if item else []
            return httpx.Response(200, json={"tracks": {"items": items}}, request=httpx.Request("GET", url))

        http.post = AsyncMock(side_effect=post)
        http.get = AsyncMock(side_effect=get)
        mocker.patch("httpx.AsyncClient", return_value=http)
        return http

    @pytest.fixture
    def openai_create(self, mocker: MockerFixture):
        mock_cls = mocker.patch("src.songpt.openai_client.AsyncOpenAI")
        instance = mock_cls.return_value
        response = Mock()
        response.choices = [Mock()]
        response.choices[0].message = Mock()
        response.choices[0].message.content = json.dumps(["Sunflower Post Malone", "DNA Kendrick Lamar"])
        instance.chat.completions.create = AsyncMock(return_value=response)
        instance.close = AsyncMock()
        return instance.chat.completions.create

    @pytest.mark.asyncio
    async def test_playlist_from_two_seed_songs(self, http, openai_create):
        playlist_id = await generate_playlist_based_on_songs(
            "sk-test",
            "Y3JlZHM=",
            "refresh-123",
            "user-1",
            "Test Playlist",
            "desc",
            ["Circles Post Malone", "Humble Kendrick Lamar"],
        )

        assert playlist_id == "5Rrf7mqN8uus2AaQQQNdc1"

        prompt = openai_create.call_args.kwargs["messages"][0]["content"]
        assert "Circles Post Malone,Humble Kendrick Lamar" in prompt

        attach = http.requests[-1]
        assert attach[1].endswith("/users/user-1/playlists/5Rrf7mqN8uus2AaQQQNdc1/tracks")
        assert attach[2]["json"] == {
            "uris": ["spotify:track:0RiRZpuVRbi7oqRdSMwhQY", "spotify:track:6HZILIRieu8S0iqY8kIKhj"]
        }

        searches = [r for r in http.requests if r[0] == "GET"]
        assert all(r[2]["headers"]["Authorization"] == "Bearer app-token" for r in searches)
        create = [r for r in http.requests if r[1].endswith("/playlists")][0]
        assert create[2]["headers"]["Authorization"] == "Bearer account-token"
        http.aclose.assert_awaited_once()
