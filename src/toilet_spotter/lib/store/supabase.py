"""Supabase (PostgREST) code store.

Talks to a Supabase project over its REST interface.  Radius filtering,
duplicate detection and score recomputation run server-side through the
``get_bathroom_codes_within_distance``, ``check_duplicate_code`` and
``update_bathroom_code_vote_score`` database functions.
"""

from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from toilet_spotter.lib.store.base import BaseCodeStore, CodeRecord, RemoteUnavailableError, VoteRecord

DEFAULT_TIMEOUT = 10.0

BATHROOM_CODES_TABLE = "bathroom_codes"
VOTES_TABLE = "votes"


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class SupabaseCodeStore(BaseCodeStore):
    """Supabase REST code store."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = url.rstrip("/") if url else ""
        self._anon_key = anon_key
        self._timeout = timeout

    @property
    def store_name(self) -> str:
        return "supabase"

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url and self._anon_key)

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._anon_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Send one request to the REST endpoint and return the decoded body.

        Raises:
            RemoteUnavailableError: On missing credentials, transport or service errors.
        """
        if not self.is_configured:
            raise RemoteUnavailableError("supabase", "Supabase credentials missing. Check configuration.")

        headers = self._headers
        if prefer:
            headers["Prefer"] = prefer
        url = f"{self._base_url}/rest/v1/{path}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, params=params, json=json, headers=headers)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Supabase request timeout ({method} {path})")
            raise RemoteUnavailableError("supabase", "Request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Supabase HTTP error {e.response.status_code} ({method} {path})")
            raise RemoteUnavailableError(
                "supabase",
                f"Store returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Supabase connection error ({method} {path})")
            raise RemoteUnavailableError("supabase", "Connection to store failed") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailableError("supabase", "Store returned invalid JSON") from e

    async def _rpc(self, function: str, payload: dict[str, Any]) -> Any:
        return await self._request("POST", f"rpc/{function}", json=payload)

    @staticmethod
    def _parse_code(row: dict[str, Any]) -> CodeRecord:
        try:
            return CodeRecord(
                id=str(row["id"]) if row.get("id") is not None else None,
                code=row["code"],
                description=row.get("description"),
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                created_at=_parse_timestamp(row.get("created_at")),
                vote_score=int(row.get("vote_score") or 0),
                device_id=row.get("device_id"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteUnavailableError("supabase", f"Malformed code row: {e}") from e

    @staticmethod
    def _parse_vote(row: dict[str, Any]) -> VoteRecord:
        try:
            return VoteRecord(
                id=str(row["id"]) if row.get("id") is not None else None,
                code_id=str(row["bathroom_code_id"]),
                device_id=row["device_id"],
                value=int(row["vote_value"]),
                created_at=_parse_timestamp(row.get("created_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteUnavailableError("supabase", f"Malformed vote row: {e}") from e

    @staticmethod
    def _first(data: Any) -> dict[str, Any] | None:
        if isinstance(data, list):
            return data[0] if data else None
        if isinstance(data, dict):
            return data
        return None

    async def find_within_radius(self, latitude: float, longitude: float, radius_meters: float) -> list[CodeRecord]:
        data = await self._rpc(
            "get_bathroom_codes_within_distance",
            {"lat": latitude, "lng": longitude, "distance_meters": radius_meters},
        )
        return [self._parse_code(row) for row in data or []]

    async def find_duplicate_within_radius(
        self,
        code: str,
        latitude: float,
        longitude: float,
        radius_meters: float,
    ) -> bool:
        data = await self._rpc(
            "check_duplicate_code",
            {"code_to_check": code, "lat": latitude, "lng": longitude, "distance_meters": radius_meters},
        )
        return bool(data)

    async def insert_code_record(self, record: CodeRecord) -> CodeRecord:
        payload = {
            "code": record.code,
            "description": record.description,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "device_id": record.device_id,
            "vote_score": record.vote_score,
        }
        data = await self._request("POST", BATHROOM_CODES_TABLE, json=payload, prefer="return=representation")
        row = self._first(data)
        if row is None:
            raise RemoteUnavailableError("supabase", "Insert returned no row")
        return self._parse_code(row)

    async def find_vote(self, code_id: str, device_id: str) -> VoteRecord | None:
        data = await self._request(
            "GET",
            VOTES_TABLE,
            params={"bathroom_code_id": f"eq.{code_id}", "device_id": f"eq.{device_id}", "select": "*"},
        )
        row = self._first(data)
        return self._parse_vote(row) if row else None

    async def insert_vote(self, vote: VoteRecord) -> VoteRecord:
        payload = {"bathroom_code_id": vote.code_id, "device_id": vote.device_id, "vote_value": vote.value}
        data = await self._request("POST", VOTES_TABLE, json=payload, prefer="return=representation")
        row = self._first(data)
        if row is None:
            raise RemoteUnavailableError("supabase", "Insert returned no row")
        return self._parse_vote(row)

    async def update_vote(self, vote_id: str, value: int) -> None:
        await self._request("PATCH", VOTES_TABLE, params={"id": f"eq.{vote_id}"}, json={"vote_value": value})

    async def recompute_score(self, code_id: str) -> None:
        await self._rpc("update_bathroom_code_vote_score", {"code_id": code_id})

    async def get_code_owner(self, code_id: str) -> str | None:
        data = await self._request(
            "GET",
            BATHROOM_CODES_TABLE,
            params={"id": f"eq.{code_id}", "select": "device_id"},
        )
        row = self._first(data)
        return row.get("device_id") if row else None
