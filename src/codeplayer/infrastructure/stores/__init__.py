from .email_ledger import SqlAlchemyEmailLedger
from .snippet_store import SqlAlchemySnippetStore, generate_slug

__all__ = ["SqlAlchemyEmailLedger", "SqlAlchemySnippetStore", "generate_slug"]
