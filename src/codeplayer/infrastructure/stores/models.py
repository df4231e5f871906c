from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CodeSnippetModel(Base):
    __tablename__ = "code_snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    share_id: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)

    html: Mapped[str] = mapped_column(Text, default="")
    css: Mapped[str] = mapped_column(Text, default="")
    js: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class EmailSentModel(Base):
    """One row per owner that already used its preview email."""

    __tablename__ = "email_sent"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    recipient: Mapped[str] = mapped_column(String(320), default="")
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
