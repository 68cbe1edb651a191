"""Shared test fixtures for actions-oidc."""

import time
from collections.abc import AsyncIterator, Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from httpx import ASGITransport, AsyncClient
from jwt.algorithms import RSAAlgorithm

from actions_oidc.api.deps import get_validator
from actions_oidc.core.app import create_app
from actions_oidc.core.settings import BindingSettings, IssuerSettings
from actions_oidc.crypto.types import KeySet, SigningKey
from actions_oidc.jwks.store import KeySetStore
from actions_oidc.validation.validator import GitHubTokenValidator

ISSUER = "https://issuer.test"
KID = "k1"
RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

Minter = Callable[..., str]
KeyFactory = Callable[[], RSAPrivateKey]
JwkBuilder = Callable[[RSAPrivateKey, str], SigningKey]


def _generate_private_key() -> RSAPrivateKey:
    return rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=RSA_KEY_SIZE,
    )


def _signing_key(private_key: RSAPrivateKey, kid: str) -> SigningKey:
    """Publish the public half of ``private_key`` as a JWK entry."""
    jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    return SigningKey(
        kty="RSA", use="sig", alg="RS256", kid=kid, n=jwk["n"], e=jwk["e"]
    )


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin issuer settings and clear binding expectations for every test."""
    monkeypatch.setenv("OIDC_ISSUER_URL", ISSUER)
    monkeypatch.setenv("OIDC_RETRY_BACKOFF", "0")
    for name in ("GITHUB_ORG", "GITHUB_REPO", "GITHUB_AUDIENCE", "GITHUB_ISSUER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def private_key() -> RSAPrivateKey:
    """RSA key whose public half is published under ``KID``."""
    return _generate_private_key()


@pytest.fixture(scope="session")
def other_private_key() -> RSAPrivateKey:
    """A second, unrelated RSA key."""
    return _generate_private_key()


@pytest.fixture
def key_factory() -> KeyFactory:
    """Return a factory for fresh RSA-2048 signing keys."""
    return _generate_private_key


@pytest.fixture
def jwk_for() -> JwkBuilder:
    """Return a builder of published JWK entries for a private key."""
    return _signing_key


@pytest.fixture
def key_set(private_key: RSAPrivateKey) -> KeySet:
    return KeySet(keys=(_signing_key(private_key, KID),))


@pytest.fixture
def store(key_set: KeySet) -> KeySetStore:
    return KeySetStore(key_set)


@pytest.fixture
def base_claims() -> dict[str, Any]:
    """Claims of a well-formed GitHub Actions token issued just now."""
    now = int(time.time())
    return {
        "sub": "sub",
        "repository": "org/repo",
        "repository_owner": "org",
        "job_workflow_ref": "ref",
        "iat": now,
        "exp": now + 300,
    }


@pytest.fixture
def mint(private_key: RSAPrivateKey, base_claims: dict[str, Any]) -> Minter:
    """Return a factory that signs tokens, RS256 with ``private_key`` by default."""

    def _mint(
        claims: dict[str, Any] | None = None,
        *,
        kid: str | None = KID,
        key: Any = None,
        algorithm: str = "RS256",
        drop: tuple[str, ...] = (),
    ) -> str:
        payload = {**base_claims, **(claims or {})}
        for name in drop:
            payload.pop(name, None)
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(
            payload,
            key if key is not None else private_key,
            algorithm=algorithm,
            headers=headers,
        )

    return _mint


@pytest.fixture
def validator(store: KeySetStore) -> GitHubTokenValidator:
    return GitHubTokenValidator(
        store,
        binding=BindingSettings(),
        issuer=IssuerSettings(issuer_url=ISSUER, retry_backoff=0),
    )


@pytest.fixture
async def client(validator: GitHubTokenValidator) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client with the validator dependency overridden."""
    app = create_app()
    app.dependency_overrides[get_validator] = lambda: validator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
