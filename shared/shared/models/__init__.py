from shared.models.user import SessionClaims

__all__ = ["SessionClaims"]
