from pydantic import BaseModel, ConfigDict, Field


class SessionClaims(BaseModel):
    """Identity-provider session context; used by every service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    uid: str
    sign_in_provider: str | None = None
    # provider id → linked external account ids, as asserted by the provider
    identities: dict[str, list[str]] = Field(default_factory=dict)
    screen_name: str | None = None

    def external_id(self, provider: str) -> str | None:
        linked = self.identities.get(provider) or []
        return str(linked[0]) if linked else None
