"""Periodic background refresh of a :class:`KeySetStore`.

Timeout, interval, and retry backoff are configured here; ``fetch_jwks``
itself never retries.
"""

import asyncio
import logging

import httpx

from actions_oidc.core.errors import KeySetError
from actions_oidc.core.settings import IssuerSettings
from actions_oidc.crypto.types import KeySet
from actions_oidc.jwks.store import KeySetStore

logger = logging.getLogger(__name__)


class KeySetRefresher:
    """Keeps a store's snapshot fresh from the issuer's JWKS endpoint."""

    def __init__(
        self,
        store: KeySetStore,
        settings: IssuerSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._client = client
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_now(self) -> KeySet:
        """Refresh with up to ``retry_attempts`` tries, backing off between them.

        Raises the last ``KeySetError`` once attempts are exhausted.
        """
        attempts = max(1, self._settings.retry_attempts)
        attempt = 1
        while True:
            try:
                return await self._store.refresh(
                    self._settings.issuer_url,
                    client=self._client,
                    timeout=self._settings.fetch_timeout,
                )
            except KeySetError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "JWKS refresh attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt,
                    attempts,
                    exc.kind,
                    self._settings.retry_backoff,
                )
            attempt += 1
            await asyncio.sleep(self._settings.retry_backoff)

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info(
            "JWKS refresher started (interval=%.0fs)",
            self._settings.refresh_interval,
        )

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("JWKS refresher stopped")

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.refresh_interval)
            try:
                await self.refresh_now()
            except KeySetError as exc:
                # Keep serving the previous snapshot until the next tick.
                logger.error("Scheduled JWKS refresh failed: %s", exc.message)
            except Exception:
                logger.exception("Unexpected error during scheduled JWKS refresh")
