"""AccessCode model: a community-submitted toilet access code tied to a place."""

from datetime import datetime

from sqlalchemy import DateTime, Double, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from toilet_spotter.models.base import Base, UUIDMixin


class AccessCode(Base, UUIDMixin):
    """A shared access code submitted by an anonymous device at its location."""

    __tablename__ = "bathroom_codes"

    code: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    vote_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    device_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_bathroom_codes_lat_lng", "latitude", "longitude"),)
