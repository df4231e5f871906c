from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from codeplayer.core.errors import EmailQuotaError
from codeplayer.infrastructure.stores.models import Base, EmailSentModel
from codeplayer.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url


class SqlAlchemyEmailLedger:
    """Remembers which owners already sent their one preview email."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def can_send(self, owner_id: str) -> bool:
        with self._provider.session() as session:
            row = session.execute(
                select(EmailSentModel.id).where(EmailSentModel.owner_id == owner_id)
            ).first()
            return row is None

    def mark_sent(self, owner_id: str, recipient: str) -> None:
        with self._provider.session() as session:
            session.add(
                EmailSentModel(
                    owner_id=owner_id,
                    recipient=recipient,
                    sent_at=datetime.now(timezone.utc),
                )
            )
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise EmailQuotaError(message="Preview email already sent", context={"owner_id": owner_id}) from e

    def close(self) -> None:
        self._provider.engine.dispose()
