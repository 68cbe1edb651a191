"""Shared holder of the current JWKS snapshot.

Snapshots are immutable :class:`KeySet` values. ``replace`` swaps the held
reference under a lock, so a reader always gets one complete snapshot, either
the one before a swap or the one after it.
"""

import logging
import threading

import httpx

from actions_oidc.core.settings import FETCH_TIMEOUT_DEFAULT
from actions_oidc.crypto.types import KeySet
from actions_oidc.jwks.client import fetch_jwks

logger = logging.getLogger(__name__)


class KeySetStore:
    """Holds the latest JWKS snapshot for concurrent validators."""

    def __init__(self, initial: KeySet | None = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = initial if initial is not None else KeySet(keys=())
        self._generation = 0

    def read(self) -> KeySet:
        """Return the current snapshot."""
        with self._lock:
            return self._snapshot

    def replace(self, snapshot: KeySet) -> int:
        """Swap in a new snapshot and return its generation number."""
        with self._lock:
            self._snapshot = snapshot
            self._generation += 1
            generation = self._generation
        logger.debug(
            "JWKS snapshot replaced (generation=%d, keys=%d)",
            generation,
            len(snapshot),
        )
        return generation

    @property
    def generation(self) -> int:
        """Number of replacements performed so far."""
        with self._lock:
            return self._generation

    async def refresh(
        self,
        issuer_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = FETCH_TIMEOUT_DEFAULT,
    ) -> KeySet:
        """Fetch the issuer's JWKS and replace the held snapshot.

        On failure the previous snapshot stays in place and the
        ``FetchError``/``ParseError`` propagates.
        """
        snapshot = await fetch_jwks(issuer_url, client=client, timeout=timeout)
        self.replace(snapshot)
        return snapshot
