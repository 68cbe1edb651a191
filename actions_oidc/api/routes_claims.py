"""Endpoint returning the verified claims of the presented token."""

from typing import Annotated

from fastapi import APIRouter, Depends

from actions_oidc.api.deps import require_github_claims
from actions_oidc.crypto.types import GitHubClaims

router = APIRouter()


@router.get("/auth/github/claims")
async def github_claims(
    claims: Annotated[GitHubClaims, Depends(require_github_claims)],
) -> GitHubClaims:
    """GET /auth/github/claims -- echo the claims of a valid token."""
    return claims
