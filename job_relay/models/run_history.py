"""Run history model, one row per processed submission."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RunHistory(Base):
    __tablename__ = "run_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    jobs_parsed: Mapped[int] = mapped_column(Integer, default=0)
    page_changed: Mapped[bool] = mapped_column(Boolean, default=False)
    new_jobs_found: Mapped[int] = mapped_column(Integer, default=0)
    jobs_notified: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
