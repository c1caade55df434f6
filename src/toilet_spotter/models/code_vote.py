"""CodeVote model: one device's up/down stance on one access code."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, SmallInteger, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from toilet_spotter.models.base import Base, UUIDMixin


class CodeVote(Base, UUIDMixin):
    """Per-device vote on an access code.

    The unique constraint keeps a single row per (code, device) pair; a later
    opposing vote updates ``vote_value`` in place.
    """

    __tablename__ = "votes"

    bathroom_code_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bathroom_codes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    device_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # 1 = upvote, -1 = downvote.
    vote_value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("bathroom_code_id", "device_id", name="uq_vote_code_device"),
        CheckConstraint("vote_value IN (1, -1)", name="ck_vote_value"),
    )
