"""FastAPI dependency injection for GitHub Actions token authentication."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from actions_oidc.core.errors import KeySetError, TokenValidationError
from actions_oidc.crypto.types import GitHubClaims
from actions_oidc.validation.validator import GitHubTokenValidator

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_validator(request: Request) -> GitHubTokenValidator:
    """Return the validator created by the application lifespan."""
    return request.app.state.validator


async def require_github_claims(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_security)
    ],
    validator: Annotated[GitHubTokenValidator, Depends(get_validator)],
) -> GitHubClaims:
    """Verify the Bearer token as a GitHub Actions OIDC token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "invalid_token", "kind": "missing_token"},
            headers=_CHALLENGE,
        )
    try:
        return await validator.validate_with_refresh(credentials.credentials)
    except TokenValidationError as exc:
        logger.warning("Rejected GitHub token (%s): %s", exc.kind, exc.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "invalid_token", "kind": exc.kind.value},
            headers=_CHALLENGE,
        ) from exc
    except KeySetError as exc:
        logger.error("JWKS unavailable during validation: %s", exc.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "temporarily_unavailable", "kind": exc.kind.value},
        ) from exc
