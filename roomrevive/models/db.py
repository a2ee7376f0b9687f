"""SQLAlchemy ORM models.

Only the tables the API reads or writes live here: the per-user credits
ledger and the redesign history. Projects and rooms belong to the web
client's own storage.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UserCreditsRow(Base):
    __tablename__ = "user_credits"
    __table_args__ = (
        CheckConstraint("credits_remaining >= 0", name="ck_user_credits_remaining_non_negative"),
        CheckConstraint("credits_monthly_limit > 0", name="ck_user_credits_limit_positive"),
        CheckConstraint("tier IN ('free', 'basic', 'pro')", name="ck_user_credits_tier"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    tier: Mapped[str] = mapped_column(String(20), nullable=False, default="free")
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    credits_monthly_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    total_redesigns: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscription_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class RedesignHistoryRow(Base):
    __tablename__ = "redesign_history"
    __table_args__ = (Index("idx_redesign_history_user_created", "user_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    original_image_url: Mapped[str] = mapped_column(Text, nullable=False)
    redesigned_image_url: Mapped[str] = mapped_column(Text, nullable=False)
    style: Mapped[str] = mapped_column(String(50), nullable=False)
    customizations: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
