from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from codeplayer.core.errors import SlugGenerationError, SnippetNotFoundError
from codeplayer.domain import SourceBundle
from codeplayer.infrastructure.stores.models import Base, CodeSnippetModel
from codeplayer.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url

SLUG_ALPHABET = string.ascii_letters + string.digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_slug(length: int = 7) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


class SqlAlchemySnippetStore:
    """
    Saved/shared snippets keyed by a short random slug.

    A slug is drawn ``max_retries`` times at ``slug_length``; if every draw
    collides the length grows by one, up to ``slug_max_length``.
    """

    def __init__(
        self,
        db_url: Optional[str] = None,
        *,
        auto_create_schema: bool = True,
        slug_length: int = 7,
        slug_max_retries: int = 10,
        slug_max_length: int = 12,
    ):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        self.slug_length = slug_length
        self.slug_max_retries = slug_max_retries
        self.slug_max_length = slug_max_length
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def _slug_exists(self, session, slug: str) -> bool:
        return session.execute(
            select(CodeSnippetModel.id).where(CodeSnippetModel.share_id == slug)
        ).first() is not None

    def generate_unique_slug(self, session) -> str:
        length = self.slug_length
        while length <= self.slug_max_length:
            for _ in range(self.slug_max_retries):
                slug = generate_slug(length)
                if not self._slug_exists(session, slug):
                    return slug
            length += 1
        raise SlugGenerationError(
            message="Could not find a free share id",
            context={"max_length": self.slug_max_length},
        )

    def save(self, *, owner_id: str, sources: SourceBundle, share_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a snippet under a fresh slug, or update one the owner already has."""
        now = _utcnow()
        with self._provider.session() as session:
            if share_id:
                row = session.execute(
                    select(CodeSnippetModel).where(
                        CodeSnippetModel.share_id == share_id,
                        CodeSnippetModel.owner_id == owner_id,
                    )
                ).scalar_one_or_none()
                if row is None:
                    raise SnippetNotFoundError(
                        message="Code not found or unauthorized",
                        context={"share_id": share_id},
                    )
                row.html = sources.markup
                row.css = sources.styles
                row.js = sources.script
                row.updated_at = now
                session.commit()
                return {"message": "Code updated", "shareId": share_id}

            for _ in range(2):
                row = CodeSnippetModel(
                    share_id=self.generate_unique_slug(session),
                    owner_id=owner_id,
                    html=sources.markup,
                    css=sources.styles,
                    js=sources.script,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                try:
                    session.commit()
                except IntegrityError:
                    # Lost a race for the slug; draw again.
                    session.rollback()
                    continue
                return {"message": "Code saved", "shareId": row.share_id}
            raise SlugGenerationError(message="Could not store snippet under a free share id")

    def get(self, share_id: str) -> Optional[Dict[str, Any]]:
        """Public view of a snippet. The owner id is the caller credential and is never included."""
        with self._provider.session() as session:
            row = session.execute(
                select(CodeSnippetModel).where(CodeSnippetModel.share_id == share_id)
            ).scalar_one_or_none()
            return self._to_dict(row) if row else None

    def can_edit(self, share_id: str, owner_id: str) -> bool:
        with self._provider.session() as session:
            owner = session.execute(
                select(CodeSnippetModel.owner_id).where(CodeSnippetModel.share_id == share_id)
            ).scalar_one_or_none()
        if owner is None:
            raise SnippetNotFoundError(message="Code not found", context={"share_id": share_id})
        return owner == owner_id

    def close(self) -> None:
        self._provider.engine.dispose()

    @staticmethod
    def _to_dict(row: CodeSnippetModel) -> Dict[str, Any]:
        return {
            "shareId": row.share_id,
            "html": row.html or "",
            "css": row.css or "",
            "js": row.js or "",
            "createdAt": row.created_at.isoformat() if row.created_at else None,
            "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
        }
