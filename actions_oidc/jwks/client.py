"""Retrieval of the issuer's published JSON Web Key Set."""

import logging

import httpx
from pydantic import ValidationError

from actions_oidc.core.errors import FetchError, ParseError
from actions_oidc.core.settings import FETCH_TIMEOUT_DEFAULT
from actions_oidc.crypto.types import KeySet

logger = logging.getLogger(__name__)

JWKS_PATH = "/.well-known/jwks"


def jwks_url(issuer_url: str) -> str:
    """Build the JWKS endpoint URL for an issuer base URL."""
    return f"{issuer_url.rstrip('/')}{JWKS_PATH}"


async def fetch_jwks(
    issuer_url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = FETCH_TIMEOUT_DEFAULT,
) -> KeySet:
    """Fetch and parse ``{issuer_url}/.well-known/jwks``.

    Does not retry. A supplied ``client`` is used as-is and left open.

    Raises:
        FetchError: transport failure, timeout, or non-2xx status.
        ParseError: body is not JSON or does not match the JWKS shape.
    """
    url = jwks_url(issuer_url)
    logger.info("Fetching JWKS from %s", url)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                response = await owned.get(url)
        else:
            response = await client.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Failed to fetch JWKS: %r", exc)
        raise FetchError(f"Failed to fetch JWKS from {url}: {exc}") from exc

    try:
        key_set = KeySet.model_validate_json(response.content)
    except ValidationError as exc:
        logger.error("Failed to parse JWKS response: %s", exc)
        raise ParseError(f"Failed to parse JWKS from {url}: {exc}") from exc

    logger.info("JWKS fetched successfully (%d keys)", len(key_set))
    return key_set
