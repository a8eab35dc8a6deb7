from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from harmoniq.database.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfileRow(Base):
    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)

    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    living_arrangement: Mapped[str | None] = mapped_column(String(32), nullable=True)
    family_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    wake_up_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    sleep_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    work_hours: Mapped[str | None] = mapped_column(Text, nullable=True)
    diet_preference: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hobbies: Mapped[str | None] = mapped_column(Text, nullable=True)
    sports_activities: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    health_goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    career_goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    personal_goal: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
