"""FastAPI application factory for the GitHub Actions token verifier."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from actions_oidc.api.routes_claims import router as claims_router
from actions_oidc.core.errors import KeySetError
from actions_oidc.core.settings import BindingSettings, IssuerSettings
from actions_oidc.jwks.refresher import KeySetRefresher
from actions_oidc.jwks.store import KeySetStore
from actions_oidc.validation.validator import GitHubTokenValidator

logger = logging.getLogger(__name__)


def create_app(client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    ``client`` is used for JWKS requests when given; otherwise each fetch
    opens its own connection.
    """
    issuer = IssuerSettings()
    binding = BindingSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = KeySetStore()
        refresher = KeySetRefresher(store, issuer, client=client)
        try:
            await refresher.refresh_now()
        except KeySetError as exc:
            # Start with an empty snapshot; the first request retries the fetch.
            logger.error("Initial JWKS fetch failed: %s", exc.message)
        app.state.validator = GitHubTokenValidator(
            store, binding=binding, issuer=issuer, client=client
        )
        await refresher.start()
        try:
            yield
        finally:
            await refresher.stop()

    app = FastAPI(
        title="GitHub Actions OIDC Verifier",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(claims_router)

    return app
