"""Unit tests for the Supabase REST code store."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from toilet_spotter.lib.store import CodeRecord, RemoteUnavailableError, SupabaseCodeStore, VoteRecord

URL = "https://project.supabase.co"


def _response(data: object, content: bytes = b"[]") -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.content = content
    response.json.return_value = data
    response.raise_for_status = MagicMock()
    return response


def _code_row(**overrides: object) -> dict:
    row = {
        "id": "11111111-1111-1111-1111-111111111111",
        "code": "1234",
        "description": "Coffee shop",
        "latitude": 47.6169,
        "longitude": -122.3201,
        "created_at": "2026-01-05T10:00:00Z",
        "vote_score": 3,
        "device_id": "device_a",
    }
    row.update(overrides)
    return row


class TestSupabaseConfiguration:
    """Tests for credential handling."""

    def test_configured(self) -> None:
        assert SupabaseCodeStore(URL, "anon").is_configured

    def test_missing_credentials(self) -> None:
        assert not SupabaseCodeStore("", "").is_configured
        assert not SupabaseCodeStore(URL, "").is_configured

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_without_request(self) -> None:
        store = SupabaseCodeStore("", "")
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request,
            pytest.raises(RemoteUnavailableError, match="credentials"),
        ):
            await store.find_within_radius(47.6, -122.3, 1000)
        mock_request.assert_not_called()

    def test_store_name(self) -> None:
        assert SupabaseCodeStore(URL, "anon").store_name == "supabase"


class TestSupabaseQueries:
    """Tests for RPC and table requests."""

    def setup_method(self) -> None:
        self.store = SupabaseCodeStore(URL + "/", "anon-key")

    @pytest.mark.asyncio
    async def test_find_within_radius_calls_rpc(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([_code_row()])
        ) as mock_request:
            records = await self.store.find_within_radius(47.6169, -122.3201, 1000)

        assert len(records) == 1
        assert records[0].code == "1234"
        assert records[0].vote_score == 3
        assert records[0].created_at is not None
        assert records[0].created_at.tzinfo is not None

        args, kwargs = mock_request.call_args
        assert args == ("POST", f"{URL}/rest/v1/rpc/get_bathroom_codes_within_distance")
        assert kwargs["json"] == {"lat": 47.6169, "lng": -122.3201, "distance_meters": 1000}
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_find_within_radius_null_body(self) -> None:
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response(None, content=b"")):
            assert await self.store.find_within_radius(47.6, -122.3, 1000) == []

    @pytest.mark.asyncio
    async def test_duplicate_check_truthy(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response(True, content=b"true")
        ) as mock_request:
            assert await self.store.find_duplicate_within_radius("1234", 47.6, -122.3, 50)

        assert mock_request.call_args.kwargs["json"] == {
            "code_to_check": "1234",
            "lat": 47.6,
            "lng": -122.3,
            "distance_meters": 50,
        }

    @pytest.mark.asyncio
    async def test_duplicate_check_falsy(self) -> None:
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response(False, b"false")):
            assert not await self.store.find_duplicate_within_radius("1234", 47.6, -122.3, 50)

    @pytest.mark.asyncio
    async def test_insert_code_requests_representation(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([_code_row(vote_score=0)])
        ) as mock_request:
            stored = await self.store.insert_code_record(
                CodeRecord(code="1234", latitude=47.6169, longitude=-122.3201, device_id="device_a")
            )

        assert stored.id == "11111111-1111-1111-1111-111111111111"
        kwargs = mock_request.call_args.kwargs
        assert kwargs["headers"]["Prefer"] == "return=representation"
        assert kwargs["json"]["device_id"] == "device_a"
        assert kwargs["json"]["vote_score"] == 0

    @pytest.mark.asyncio
    async def test_insert_code_empty_response_raises(self) -> None:
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([])),
            pytest.raises(RemoteUnavailableError, match="no row"),
        ):
            await self.store.insert_code_record(CodeRecord(code="1", latitude=0, longitude=0, device_id="d"))

    @pytest.mark.asyncio
    async def test_find_vote_uses_eq_filters(self) -> None:
        row = {"id": "v1", "bathroom_code_id": "c1", "device_id": "device_b", "vote_value": -1}
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([row])
        ) as mock_request:
            vote = await self.store.find_vote("c1", "device_b")

        assert vote == VoteRecord(code_id="c1", device_id="device_b", value=-1, id="v1")
        params = mock_request.call_args.kwargs["params"]
        assert params["bathroom_code_id"] == "eq.c1"
        assert params["device_id"] == "eq.device_b"

    @pytest.mark.asyncio
    async def test_find_vote_none(self) -> None:
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([])):
            assert await self.store.find_vote("c1", "device_b") is None

    @pytest.mark.asyncio
    async def test_update_vote_patches_by_id(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response(None, content=b"")
        ) as mock_request:
            await self.store.update_vote("v1", 1)

        args, kwargs = mock_request.call_args
        assert args[0] == "PATCH"
        assert kwargs["params"] == {"id": "eq.v1"}
        assert kwargs["json"] == {"vote_value": 1}

    @pytest.mark.asyncio
    async def test_recompute_calls_rpc(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response(None, content=b"")
        ) as mock_request:
            await self.store.recompute_score("c1")

        args, kwargs = mock_request.call_args
        assert args[1].endswith("/rpc/update_bathroom_code_vote_score")
        assert kwargs["json"] == {"code_id": "c1"}

    @pytest.mark.asyncio
    async def test_get_code_owner(self) -> None:
        with patch(
            "httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([{"device_id": "device_a"}])
        ):
            assert await self.store.get_code_owner("c1") == "device_a"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([])):
            assert await self.store.get_code_owner("c1") is None


class TestSupabaseErrors:
    """Transport and service failures become RemoteUnavailableError."""

    def setup_method(self) -> None:
        self.store = SupabaseCodeStore(URL, "anon-key")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request,
            pytest.raises(RemoteUnavailableError, match="timed out"),
        ):
            mock_request.side_effect = httpx.TimeoutException("timed out")
            await self.store.find_within_radius(47.6, -122.3, 1000)

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request,
            pytest.raises(RemoteUnavailableError, match="Connection"),
        ):
            mock_request.side_effect = httpx.ConnectError("refused")
            await self.store.get_code_owner("c1")

    @pytest.mark.asyncio
    async def test_http_status_error_keeps_status(self) -> None:
        request = httpx.Request("POST", f"{URL}/rest/v1/votes")
        error_response = httpx.Response(409, request=request)
        response = _response([])
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "conflict", request=request, response=error_response
        )

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(RemoteUnavailableError) as exc_info:
                await self.store.insert_vote(VoteRecord(code_id="c1", device_id="d", value=1))

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        response = _response(None, content=b"<html>")
        response.json.side_effect = ValueError("no json")
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response),
            pytest.raises(RemoteUnavailableError, match="invalid JSON"),
        ):
            await self.store.find_within_radius(47.6, -122.3, 1000)

    @pytest.mark.asyncio
    async def test_malformed_row(self) -> None:
        with (
            patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=_response([{"id": "x"}])),
            pytest.raises(RemoteUnavailableError, match="Malformed"),
        ):
            await self.store.find_within_radius(47.6, -122.3, 1000)
