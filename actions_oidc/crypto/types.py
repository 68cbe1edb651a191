"""Type definitions for signing keys, JWKS snapshots, and verified claims."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

# Unpadded base64url, as JWK integer members are encoded.
BASE64URL_PATTERN = r"^[A-Za-z0-9_-]+$"


class SigningKey(BaseModel):
    """Single JWK entry as published by the issuer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kty: str
    use: str | None = None
    kid: str
    alg: str | None = None
    n: str = Field(pattern=BASE64URL_PATTERN)
    e: str = Field(pattern=BASE64URL_PATTERN)
    x5c: tuple[str, ...] | None = None
    x5t: str | None = None
    x5t_s256: str | None = Field(default=None, alias="x5t#S256")


class KeySet(BaseModel):
    """One immutable JWKS snapshot."""

    model_config = ConfigDict(frozen=True)

    keys: tuple[SigningKey, ...]

    @model_validator(mode="after")
    def _unique_kids(self) -> "KeySet":
        seen: set[str] = set()
        for key in self.keys:
            if key.kid in seen:
                raise ValueError(f"duplicate kid in JWKS: {key.kid!r}")
            seen.add(key.kid)
        return self

    def find(self, kid: str) -> SigningKey | None:
        """Return the key with the given ``kid``, if present."""
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    def __len__(self) -> int:
        return len(self.keys)


class GitHubClaims(BaseModel):
    """Verified claims of a GitHub Actions OIDC token."""

    model_config = ConfigDict(frozen=True, strict=True)

    subject: str = Field(validation_alias=AliasChoices("sub", "subject"))
    repository: str
    repository_owner: str
    job_workflow_ref: str
    iat: int = Field(ge=0)
