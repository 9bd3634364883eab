"""Flat key/value metadata table (schema version, creation date)."""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ConfigEntry(Base):
    __tablename__ = "freelance_config"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
