"""Tests for the YouTube Data API client using httpx.MockTransport."""

import httpx
import pytest

from channel_ingest.channel.resolver import parse_channel_reference, resolve_channel
from channel_ingest.channel.youtube_client import YouTubeDataClient
from channel_ingest.core.exceptions import (
    ConfigurationMissingError,
    NotFoundError,
    QuotaExceededError,
    UpstreamError,
)
from channel_ingest.core.config import Settings
from channel_ingest.core.http_session import close_all_clients
from channel_ingest.transcription.fetcher import CAPTION_ENDPOINTS


def make_client(handler, settings) -> YouTubeDataClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YouTubeDataClient(settings=settings, client=http)


class TestConfiguration:
    def test_missing_key_raises(self):
        settings = Settings(youtube_api_key=None, _env_file=None)

        with pytest.raises(ConfigurationMissingError):
            YouTubeDataClient(settings=settings, client=httpx.AsyncClient())

    @pytest.mark.asyncio
    async def test_shared_client_has_no_request_timeout(self, settings):
        try:
            api = YouTubeDataClient(settings=settings)
            assert api.client.timeout == httpx.Timeout(None)
        finally:
            await close_all_clients()


class TestUploadsPlaylist:
    @pytest.mark.asyncio
    async def test_returns_uploads_id(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/channels")
            assert request.url.params["part"] == "contentDetails"
            assert request.url.params["id"] == "UC123"
            assert request.url.params["key"] == "test-key"
            return httpx.Response(
                200, json={"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UU123"}}}]}
            )

        assert await make_client(handler, settings).get_uploads_playlist_id("UC123") == "UU123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [403, 429])
    async def test_quota(self, settings, status_code):
        client = make_client(lambda request: httpx.Response(status_code, text="quotaExceeded"), settings)

        with pytest.raises(QuotaExceededError) as exc_info:
            await client.get_uploads_playlist_id("UC123")
        assert "quota exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_items_is_not_found(self, settings):
        client = make_client(lambda request: httpx.Response(200, json={"items": []}), settings)

        with pytest.raises(NotFoundError, match="Channel not found or inaccessible"):
            await client.get_uploads_playlist_id("UC123")

    @pytest.mark.asyncio
    async def test_missing_uploads_is_not_found(self, settings):
        client = make_client(lambda request: httpx.Response(200, json={"items": [{"contentDetails": {}}]}), settings)

        with pytest.raises(NotFoundError, match="uploads playlist"):
            await client.get_uploads_playlist_id("UC123")


class TestListPage:
    @pytest.mark.asyncio
    async def test_parses_items_and_token(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["playlistId"] == "UU123"
            assert request.url.params["maxResults"] == "50"
            assert request.url.params["pageToken"] == "tok1"
            return httpx.Response(
                200,
                json={
                    "nextPageToken": "tok2",
                    "items": [
                        {"snippet": {"title": "One", "resourceId": {"videoId": "v1"}}},
                        {"snippet": {"title": "Broken"}},
                    ],
                },
            )

        page = await make_client(handler, settings).list_page("UU123", page_token="tok1")

        assert [item.video_id for item in page.items] == ["v1"]
        assert page.next_page_token == "tok2"

    @pytest.mark.asyncio
    async def test_playlist_404(self, settings):
        client = make_client(lambda request: httpx.Response(404), settings)

        with pytest.raises(NotFoundError, match="Uploads playlist not found"):
            await client.list_page("UU123")

    @pytest.mark.asyncio
    async def test_other_status_is_upstream_failure(self, settings):
        client = make_client(lambda request: httpx.Response(500, text="backend error"), settings)

        with pytest.raises(UpstreamError) as exc_info:
            await client.list_page("UU123")
        assert exc_info.value.status_code == 500
        assert "Failed to fetch playlist items (500): backend error" == str(exc_info.value)


class TestDetails:
    @pytest.mark.asyncio
    async def test_parses_details(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["id"] == "v1,v2"
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "id": "v1",
                            "snippet": {
                                "title": "Hello",
                                "thumbnails": {"default": {"url": "d.jpg"}},
                                "tags": ["a"],
                                "categoryId": "22",
                                "liveBroadcastContent": "none",
                            },
                            "statistics": {"viewCount": "1200", "likeCount": "10"},
                            "contentDetails": {"duration": "PT4M"},
                        }
                    ]
                },
            )

        details = await make_client(handler, settings).get_details(["v1", "v2"])

        assert len(details) == 1
        detail = details[0]
        assert detail.view_count == 1200
        assert detail.like_count == 10
        assert detail.comment_count == 0
        assert detail.thumbnail_url == "d.jpg"
        assert detail.duration_code == "PT4M"


class TestCaptions:
    @pytest.mark.asyncio
    async def test_lists_tracks(self, settings):
        payload = {
            "items": [
                {"snippet": {"language": "en", "trackKind": "standard"}},
                {"snippet": {"language": "ja", "trackKind": "asr"}},
            ]
        }
        client = make_client(lambda request: httpx.Response(200, json=payload), settings)

        tracks = await client.list_caption_tracks("v1")

        assert [(t.language, t.is_auto_generated) for t in tracks] == [("en", False), ("ja", True)]

    @pytest.mark.asyncio
    async def test_payload_request_rotates_user_agent(self, settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((dict(request.url.params), request.headers["User-Agent"]))
            return httpx.Response(200, text="<transcript/>")

        client = make_client(handler, settings)
        endpoint = CAPTION_ENDPOINTS[1]

        await client.get_caption_payload("v1", "en", endpoint, attempt=1)
        await client.get_caption_payload("v1", "en", endpoint, attempt=2)

        assert seen[0][0] == {"lang": "en", "v": "v1", "fmt": "json3"}
        assert seen[0][1] != seen[1][1]

    @pytest.mark.asyncio
    async def test_payload_http_error(self, settings):
        client = make_client(lambda request: httpx.Response(404), settings)

        with pytest.raises(UpstreamError, match="HTTP 404"):
            await client.get_caption_payload("v1", "en", CAPTION_ENDPOINTS[0])

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_error(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError):
            await make_client(handler, settings).get_caption_payload("v1", "en", CAPTION_ENDPOINTS[0])


class TestResolver:
    @pytest.mark.parametrize(
        ("reference", "identifier"),
        [
            ("@GoogleDevelopers", "@GoogleDevelopers"),
            ("https://www.youtube.com/@GoogleDevelopers/videos", "@GoogleDevelopers"),
            ("https://www.youtube.com/channel/UC_x5XG1OV2P6uZZ5FSM9Ttw", "UC_x5XG1OV2P6uZZ5FSM9Ttw"),
            ("https://youtube.com/user/legacyname", "legacyname"),
            ("UC_x5XG1OV2P6uZZ5FSM9Ttw", "UC_x5XG1OV2P6uZZ5FSM9Ttw"),
        ],
    )
    def test_parse_reference(self, reference, identifier):
        assert parse_channel_reference(reference) == identifier

    def test_unknown_url(self):
        with pytest.raises(ValueError):
            parse_channel_reference("https://www.youtube.com/watch?v=abc")

    @pytest.mark.asyncio
    async def test_falls_back_to_handle_lookup(self, settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            params = dict(request.url.params)
            calls.append(params)
            if "forHandle" in params:
                return httpx.Response(
                    200,
                    json={
                        "items": [
                            {
                                "id": "UCabc",
                                "snippet": {"title": "Dev Channel"},
                                "statistics": {"subscriberCount": "42", "videoCount": "7"},
                            }
                        ]
                    },
                )
            return httpx.Response(200, json={"items": []})

        info = await resolve_channel("@devchannel", make_client(handler, settings))

        assert info.channel_id == "UCabc"
        assert info.subscriber_count == 42
        assert calls[0]["id"] == "@devchannel"
        assert calls[1]["forHandle"] == "@devchannel"

    @pytest.mark.asyncio
    async def test_unresolvable(self, settings):
        client = make_client(lambda request: httpx.Response(200, json={"items": []}), settings)

        with pytest.raises(NotFoundError):
            await resolve_channel("nobody", client)
