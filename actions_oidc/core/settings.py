"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

GITHUB_ACTIONS_ISSUER = "https://token.actions.githubusercontent.com"
FETCH_TIMEOUT_DEFAULT = 10.0
REFRESH_INTERVAL_DEFAULT = 300.0
RETRY_BACKOFF_DEFAULT = 5.0
RETRY_ATTEMPTS_DEFAULT = 3
REFRESH_COOLDOWN_DEFAULT = 30.0


class IssuerSettings(BaseSettings):
    """Where the JWKS is fetched from and how often it is refreshed."""

    model_config = SettingsConfigDict(env_prefix="OIDC_")

    issuer_url: str = GITHUB_ACTIONS_ISSUER
    fetch_timeout: float = FETCH_TIMEOUT_DEFAULT
    refresh_interval: float = REFRESH_INTERVAL_DEFAULT
    retry_backoff: float = RETRY_BACKOFF_DEFAULT
    retry_attempts: int = RETRY_ATTEMPTS_DEFAULT
    # Minimum gap between refreshes triggered by an unknown kid.
    refresh_cooldown: float = REFRESH_COOLDOWN_DEFAULT


class BindingSettings(BaseSettings):
    """Expected organization, repository, audience and issuer for tokens.

    Every field is optional; an empty value disables the matching check.
    """

    model_config = SettingsConfigDict(env_prefix="GITHUB_")

    org: str = ""
    repo: str = ""
    audience: str = ""
    issuer: str = ""
