from .mailer import Mailer, PreviewEmailService, build_preview_message

__all__ = ["Mailer", "PreviewEmailService", "build_preview_message"]
