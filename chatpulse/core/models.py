# chatpulse/core/models.py

from datetime import datetime, timezone
from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chatpulse.core.constants import Platform
from chatpulse.core.db import Base
from chatpulse.core.events import SessionRecord


class ChatSessionRecord(Base):
    __tablename__ = "chat_session_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    channel_name: Mapped[str] = mapped_column(String, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    avg_mpm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_mps: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_viewers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_messages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unique_chatters: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    platform: Mapped[str] = mapped_column(String, nullable=False)  # "twitch" | "youtube" | "kick"
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    @classmethod
    def from_record(cls, record: SessionRecord) -> "ChatSessionRecord":
        return cls(
            channel_name=record.channel_name,
            avatar_url=record.avatar_url,
            avg_mpm=record.avg_mpm,
            avg_mps=record.avg_mps,
            duration_ms=record.duration_ms,
            avg_viewers=record.avg_viewers,
            total_messages=record.total_messages,
            unique_chatters=record.unique_chatters,
            platform=record.platform.value,
            recorded_at=record.timestamp,
        )

    def to_record(self) -> SessionRecord:
        recorded_at = self.recorded_at
        # SQLite hands back naive datetimes
        if recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=timezone.utc)
        return SessionRecord(
            channel_name=self.channel_name,
            avatar_url=self.avatar_url,
            avg_mpm=self.avg_mpm,
            avg_mps=self.avg_mps,
            duration_ms=self.duration_ms,
            avg_viewers=self.avg_viewers,
            total_messages=self.total_messages,
            unique_chatters=self.unique_chatters,
            platform=Platform(self.platform),
            timestamp=recorded_at,
        )
