"""SQLAlchemy-backed code store.

Works against PostgreSQL (asyncpg) and SQLite (aiosqlite).  Radius queries
use a bounding-box prefilter in SQL and an exact haversine check in Python,
so no spatial extension is required.
"""

import uuid

from loguru import logger
from sqlalchemy import ColumnElement, func, or_, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toilet_spotter.lib.geo import distance_meters, meters_to_degrees
from toilet_spotter.lib.store.base import BaseCodeStore, CodeRecord, RemoteUnavailableError, VoteRecord
from toilet_spotter.models.access_code import AccessCode
from toilet_spotter.models.code_vote import CodeVote


def _parse_id(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None


def _longitude_window(longitude: float, delta: float) -> ColumnElement[bool]:
    """Longitude prefilter that wraps across the antimeridian."""
    if delta >= 180:
        return true()
    west, east = longitude - delta, longitude + delta
    if west < -180:
        return or_(AccessCode.longitude >= west + 360, AccessCode.longitude <= east)
    if east > 180:
        return or_(AccessCode.longitude >= west, AccessCode.longitude <= east - 360)
    return AccessCode.longitude.between(west, east)


def _to_record(row: AccessCode) -> CodeRecord:
    return CodeRecord(
        id=str(row.id),
        code=row.code,
        description=row.description,
        latitude=row.latitude,
        longitude=row.longitude,
        created_at=row.created_at,
        vote_score=row.vote_score,
        device_id=row.device_id,
    )


def _to_vote(row: CodeVote) -> VoteRecord:
    return VoteRecord(
        id=str(row.id),
        code_id=str(row.bathroom_code_id),
        device_id=row.device_id,
        value=row.vote_value,
        created_at=row.created_at,
    )


class SqlCodeStore(BaseCodeStore):
    """Code store over the ``bathroom_codes`` and ``votes`` tables."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def store_name(self) -> str:
        return "sql"

    async def _fail(self, action: str, exc: SQLAlchemyError) -> RemoteUnavailableError:
        logger.warning(f"SQL code store error during {action}: {exc.__class__.__name__}")
        await self._session.rollback()
        return RemoteUnavailableError("sql", f"Database error during {action}")

    async def _candidates(self, latitude: float, longitude: float, radius_meters: float) -> list[AccessCode]:
        delta = meters_to_degrees(radius_meters, latitude)
        query = (
            select(AccessCode)
            .where(
                AccessCode.latitude.between(latitude - delta, latitude + delta),
                _longitude_window(longitude, delta),
            )
            .order_by(AccessCode.created_at, AccessCode.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        return [
            row
            for row in result.scalars().all()
            if distance_meters(latitude, longitude, row.latitude, row.longitude) <= radius_meters
        ]

    async def find_within_radius(self, latitude: float, longitude: float, radius_meters: float) -> list[CodeRecord]:
        try:
            rows = await self._candidates(latitude, longitude, radius_meters)
        except SQLAlchemyError as e:
            raise await self._fail("radius query", e) from e
        return [_to_record(row) for row in rows]

    async def find_duplicate_within_radius(
        self,
        code: str,
        latitude: float,
        longitude: float,
        radius_meters: float,
    ) -> bool:
        try:
            rows = await self._candidates(latitude, longitude, radius_meters)
        except SQLAlchemyError as e:
            raise await self._fail("duplicate check", e) from e
        return any(row.code == code for row in rows)

    async def insert_code_record(self, record: CodeRecord) -> CodeRecord:
        row = AccessCode(
            code=record.code,
            description=record.description,
            latitude=record.latitude,
            longitude=record.longitude,
            vote_score=record.vote_score,
            device_id=record.device_id,
        )
        try:
            self._session.add(row)
            await self._session.commit()
            await self._session.refresh(row)
        except SQLAlchemyError as e:
            raise await self._fail("code insert", e) from e
        return _to_record(row)

    async def find_vote(self, code_id: str, device_id: str) -> VoteRecord | None:
        parsed = _parse_id(code_id)
        if parsed is None:
            return None
        query = (
            select(CodeVote)
            .where(CodeVote.bathroom_code_id == parsed, CodeVote.device_id == device_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self._session.execute(query)
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail("vote lookup", e) from e
        return _to_vote(row) if row else None

    async def insert_vote(self, vote: VoteRecord) -> VoteRecord:
        parsed = _parse_id(vote.code_id)
        if parsed is None:
            raise RemoteUnavailableError("sql", f"Invalid code id {vote.code_id!r}")
        row = CodeVote(bathroom_code_id=parsed, device_id=vote.device_id, vote_value=vote.value)
        try:
            self._session.add(row)
            await self._session.commit()
            await self._session.refresh(row)
        except SQLAlchemyError as e:
            raise await self._fail("vote insert", e) from e
        return _to_vote(row)

    async def update_vote(self, vote_id: str, value: int) -> None:
        parsed = _parse_id(vote_id)
        if parsed is None:
            raise RemoteUnavailableError("sql", f"Invalid vote id {vote_id!r}")
        try:
            await self._session.execute(update(CodeVote).where(CodeVote.id == parsed).values(vote_value=value))
            await self._session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("vote update", e) from e

    async def recompute_score(self, code_id: str) -> None:
        parsed = _parse_id(code_id)
        if parsed is None:
            raise RemoteUnavailableError("sql", f"Invalid code id {code_id!r}")
        # Score is rewritten from the vote sum in one statement, never incremented.
        total = (
            select(func.coalesce(func.sum(CodeVote.vote_value), 0))
            .where(CodeVote.bathroom_code_id == parsed)
            .scalar_subquery()
        )
        try:
            await self._session.execute(
                update(AccessCode)
                .where(AccessCode.id == parsed)
                .values(vote_score=total)
                .execution_options(synchronize_session=False)
            )
            await self._session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("score recompute", e) from e

    async def get_code_owner(self, code_id: str) -> str | None:
        parsed = _parse_id(code_id)
        if parsed is None:
            return None
        try:
            result = await self._session.execute(select(AccessCode.device_id).where(AccessCode.id == parsed))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail("owner lookup", e) from e
