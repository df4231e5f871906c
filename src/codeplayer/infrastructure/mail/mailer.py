"""
Preview mailer.

Sends a static, non-interactive rendering of a snippet (no console shim, no
relay). Without an SMTP host configured the message is only logged.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from codeplayer.config import EmailConfig
from codeplayer.core.errors import EmailQuotaError, MailDeliveryError
from codeplayer.domain import SourceBundle
from codeplayer.infrastructure.stores.email_ledger import SqlAlchemyEmailLedger
from codeplayer.preview.composer import compose_static

logger = logging.getLogger(__name__)

PREVIEW_SUBJECT = "Code Player - Your Preview"


def build_preview_message(sender: str, recipient: str, sources: SourceBundle) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = PREVIEW_SUBJECT
    msg["From"] = sender
    msg["To"] = recipient
    msg.set_content("Your Code Player preview is attached as HTML.")
    msg.add_alternative(compose_static(sources), subtype="html")
    return msg


class Mailer:
    def __init__(self, config: Optional[EmailConfig] = None):
        self.config = config or EmailConfig()

    @property
    def enabled(self) -> bool:
        return bool(self.config.smtp_host)

    def send(self, msg: EmailMessage) -> bool:
        if not self.enabled:
            logger.info(f"[Mailer] Email would be sent to {msg['To']}: {msg['Subject']}")
            return True
        cfg = self.config
        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout) as smtp:
                if cfg.use_tls:
                    smtp.starttls()
                if cfg.username:
                    smtp.login(cfg.username, cfg.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(message=f"Could not send email: {e}", context={"to": msg["To"]}) from e
        logger.info("Preview email sent to %s", msg["To"])
        return True


class PreviewEmailService:
    """One preview email per owner."""

    def __init__(self, mailer: Mailer, ledger: SqlAlchemyEmailLedger):
        self.mailer = mailer
        self.ledger = ledger

    def can_send(self, owner_id: str) -> bool:
        return self.ledger.can_send(owner_id)

    def send_preview(self, owner_id: str, recipient: str, sources: SourceBundle) -> None:
        if not self.ledger.can_send(owner_id):
            raise EmailQuotaError(message="Preview email already sent", context={"owner_id": owner_id})
        msg = build_preview_message(self.mailer.config.sender, recipient, sources)
        self.mailer.send(msg)
        self.ledger.mark_sent(owner_id, recipient)
