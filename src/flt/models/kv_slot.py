"""
SQLAlchemy storage models for the Fund Launch Tracker.

Progress is persisted as opaque JSON payloads in named key-value slots,
so the schema is a single table.
"""

from datetime import datetime

from sqlalchemy import DateTime, MetaData, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class Base(DeclarativeBase):
    """Declarative base sharing the naming-convention metadata."""

    metadata = metadata

    __tablename__: str


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class KeyValueSlotModel(Base, TimestampMixin):
    """
    SQLAlchemy model for the kv_slots table.

    One row per durable slot: the serialized progression state lives under
    one key and the first-visit onboarding flag under another.
    """

    __tablename__ = "kv_slots"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
