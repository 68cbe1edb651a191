"""Verification of GitHub Actions OIDC tokens against a JWKS snapshot."""

import asyncio
import json
import logging
import time
from typing import Any

import httpx
import jwt
from jwt.types import Options
from jwt.utils import base64url_decode
from pydantic import ValidationError

from actions_oidc.core.errors import (
    AlgorithmMismatchError,
    AudienceMismatchError,
    ClaimsDecodeError,
    ExpiredOrNotYetValidError,
    HeaderDecodeError,
    IssuerMismatchError,
    KeyNotFoundError,
    MalformedTokenError,
    OrganizationMismatchError,
    RepositoryMismatchError,
    SignatureVerificationError,
)
from actions_oidc.core.settings import BindingSettings, IssuerSettings
from actions_oidc.crypto.keys import public_key_from_signing_key
from actions_oidc.crypto.types import GitHubClaims
from actions_oidc.jwks.store import KeySetStore

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"


def _check_format(token: str) -> None:
    """Reject anything whose first segment is not a JSON header with ``alg``."""
    first = token.split(".", 1)[0]
    if not first:
        raise MalformedTokenError("Invalid token format. Expected a JWT.")
    try:
        header = json.loads(base64url_decode(first))
    except ValueError as exc:
        raise MalformedTokenError(
            "Invalid token format. Expected a JWT, not an opaque token."
        ) from exc
    if not isinstance(header, dict) or "alg" not in header:
        raise MalformedTokenError("Invalid token format. Expected a JWT header.")


def _decode_header(token: str) -> dict[str, Any]:
    try:
        return jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        raise HeaderDecodeError(
            f"Failed to decode header: {exc}. "
            "Make sure you're using a valid JWT, not a PAT."
        ) from exc


def _verify(
    token: str,
    key: Any,
    audience: str | None,
    issuer: str | None,
) -> dict[str, Any]:
    """Check signature and registered claims; return the raw payload."""
    opts: Options = {}
    if audience is None:
        opts["verify_aud"] = False
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[ALGORITHM],
            audience=audience,
            issuer=issuer,
            options=opts,
        )
    except (
        jwt.ExpiredSignatureError,
        jwt.ImmatureSignatureError,
        jwt.InvalidIssuedAtError,
    ) as exc:
        raise ExpiredOrNotYetValidError(f"Token is not currently valid: {exc}") from exc
    except jwt.InvalidAudienceError as exc:
        raise AudienceMismatchError(f"Token audience rejected: {exc}") from exc
    except jwt.InvalidIssuerError as exc:
        raise IssuerMismatchError(f"Token issuer rejected: {exc}") from exc
    except jwt.MissingRequiredClaimError as exc:
        if exc.claim == "aud":
            raise AudienceMismatchError("Token has no audience claim") from exc
        if exc.claim == "iss":
            raise IssuerMismatchError("Token has no issuer claim") from exc
        raise ClaimsDecodeError(f"Token is missing a claim: {exc}") from exc
    except jwt.InvalidAlgorithmError as exc:
        raise AlgorithmMismatchError(f"Token algorithm rejected: {exc}") from exc
    except jwt.InvalidSignatureError as exc:
        raise SignatureVerificationError("Token signature verification failed") from exc
    except jwt.InvalidTokenError as exc:
        raise ClaimsDecodeError(f"Failed to decode token: {exc}") from exc


def validate_github_token(
    token: str,
    store: KeySetStore,
    expected_audience: str | None = None,
    *,
    expected_org: str | None = None,
    expected_repo: str | None = None,
    expected_issuer: str | None = None,
) -> GitHubClaims:
    """Validate a GitHub Actions OIDC token and return its claims.

    Every check is independent: an empty or ``None`` expectation disables it.

    Raises:
        TokenValidationError: one subclass per failure kind. A
            ``KeyNotFoundError`` means the snapshot may be stale; refresh the
            store and retry once.
    """
    logger.debug("Starting token validation")
    _check_format(token)
    header = _decode_header(token)

    snapshot = store.read()
    kid = header.get("kid")
    if kid is None:
        raise HeaderDecodeError("Token header has no kid; refusing to guess a key")
    signing_key = snapshot.find(kid)
    if signing_key is None:
        logger.debug("kid %r not in JWKS snapshot (%d keys)", kid, len(snapshot))
        raise KeyNotFoundError(f"Matching key {kid!r} not found in JWKS")
    public_key = public_key_from_signing_key(signing_key)

    declared = header.get("alg")
    if declared != ALGORITHM:
        raise AlgorithmMismatchError(
            f"Token algorithm {declared!r} is not allowed; expected {ALGORITHM}"
        )

    payload = _verify(
        token, public_key, expected_audience or None, expected_issuer or None
    )

    try:
        claims = GitHubClaims.model_validate(payload)
    except ValidationError as exc:
        raise ClaimsDecodeError(f"Token claims have the wrong shape: {exc}") from exc

    if expected_org and claims.repository_owner != expected_org:
        logger.warning(
            "Token organization mismatch. Expected: %s, Found: %s",
            expected_org,
            claims.repository_owner,
        )
        raise OrganizationMismatchError("Token is not from the expected organization")

    if expected_repo and claims.repository != expected_repo:
        logger.warning(
            "Token repository mismatch. Expected: %s, Found: %s",
            expected_repo,
            claims.repository,
        )
        raise RepositoryMismatchError("Token is not from the expected repository")

    logger.debug("Token validation completed successfully")
    return claims


class GitHubTokenValidator:
    """Binds a key store and deployment expectations to token validation."""

    def __init__(
        self,
        store: KeySetStore,
        binding: BindingSettings | None = None,
        issuer: IssuerSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._binding = binding or BindingSettings()
        self._issuer = issuer or IssuerSettings()
        self._client = client
        self._refresh_lock = asyncio.Lock()
        self._last_refresh: float | None = None

    @property
    def store(self) -> KeySetStore:
        return self._store

    def validate(
        self, token: str, expected_audience: str | None = None
    ) -> GitHubClaims:
        """Validate against the current snapshot and configured expectations."""
        return validate_github_token(
            token,
            self._store,
            expected_audience or self._binding.audience or None,
            expected_org=self._binding.org,
            expected_repo=self._binding.repo,
            expected_issuer=self._binding.issuer,
        )

    async def validate_with_refresh(
        self, token: str, expected_audience: str | None = None
    ) -> GitHubClaims:
        """Validate, refreshing the JWKS and retrying once on an unknown ``kid``.

        Concurrent callers that miss on the same snapshot share one refresh.
        Within ``refresh_cooldown`` seconds of the last refresh no new fetch
        is made and the ``KeyNotFoundError`` stands. A ``FetchError`` or
        ``ParseError`` from the refresh propagates.
        """
        seen = self._store.generation
        try:
            return self.validate(token, expected_audience)
        except KeyNotFoundError:
            logger.info("Signing key not in JWKS snapshot; refreshing and retrying")

        async with self._refresh_lock:
            if self._store.generation == seen:
                if self._in_cooldown():
                    logger.info(
                        "JWKS refreshed less than %.0fs ago; not refreshing again",
                        self._issuer.refresh_cooldown,
                    )
                else:
                    self._last_refresh = time.monotonic()
                    await self._store.refresh(
                        self._issuer.issuer_url,
                        client=self._client,
                        timeout=self._issuer.fetch_timeout,
                    )
        return self.validate(token, expected_audience)

    def _in_cooldown(self) -> bool:
        if self._last_refresh is None:
            return False
        elapsed = time.monotonic() - self._last_refresh
        return elapsed < self._issuer.refresh_cooldown
