"""
SQLAlchemy Base Models

Provides the declarative base and the column mixin shared by the
authoritative ``notes`` table and the device-local ``local_notes`` table.
"""

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for all SQLAlchemy ORM models."""

    pass


class NoteFieldsMixin:
    """
    Replicated note fields.

    Note:
        Timestamps are client-observed epoch milliseconds, not database
        clock values. They are only used for display and watermarks.
    """

    title: Mapped[str] = mapped_column(String(500), default="Untitled Note")
    content: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    version: Mapped[int] = mapped_column(default=1, nullable=False)
