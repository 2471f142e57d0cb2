from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_files() -> list[str]:
    """Load .env from backend root so SESSION_TOKEN_* vars are always available."""
    base = Path(__file__).resolve().parents[3]  # shared/shared/auth/ → backend root
    return [str(base / ".env"), ".env"]


class SessionTokenSettings(BaseSettings):
    """Verification parameters for identity-provider session tokens.

    ``secret`` is the HMAC secret for HS* algorithms or the PEM-encoded
    public key for RS*/ES* algorithms.
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSION_TOKEN_",
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret: str = "change-me"
    algorithm: str = "HS256"
    issuer: str = "https://securetoken.google.com/secret-admirer"
    audience: str = "secret-admirer"
