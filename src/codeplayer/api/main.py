"""
Code Player API - FastAPI backend for the playground page
Supports Server-Sent Events (SSE) for preview and console updates
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import FastAPI

from codeplayer import __version__
from codeplayer.config import AppConfig, load_config
from codeplayer.infrastructure.mail import Mailer, PreviewEmailService
from codeplayer.infrastructure.stores import SqlAlchemyEmailLedger, SqlAlchemySnippetStore
from codeplayer.preview.session import SessionRegistry

from .routes import code, email, playground, sessions

logger = logging.getLogger(__name__)


def _lifespan_for(config: AppConfig):
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        storage = config.storage
        app.state.config = config
        app.state.sessions = SessionRegistry(config.preview, config.sessions)
        app.state.snippets = SqlAlchemySnippetStore(
            storage.db_url,
            slug_length=storage.slug_length,
            slug_max_retries=storage.slug_max_retries,
            slug_max_length=storage.slug_max_length,
        )
        ledger = SqlAlchemyEmailLedger(storage.db_url)
        app.state.email_service = PreviewEmailService(Mailer(config.email), ledger)
        sweeper = asyncio.create_task(app.state.sessions.run_sweeper())
        logger.info("Code Player API started (db=%s)", storage.db_url)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await app.state.sessions.close_all()
            app.state.snippets.close()
            ledger.close()

    return lifespan


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or load_config()
    app = FastAPI(
        title="Code Player API",
        description="HTML/CSS/JavaScript playground with sandboxed live preview",
        version=__version__,
        lifespan=_lifespan_for(config),
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": __version__}

    app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
    app.include_router(code.router, prefix="/api", tags=["Code"])
    app.include_router(email.router, prefix="/api", tags=["Email"])
    # Last: "/{share_id}" would shadow anything registered after it.
    app.include_router(playground.router, tags=["Playground"])
    return app


if __name__ == "__main__":
    import uvicorn

    cfg = load_config()
    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port)
