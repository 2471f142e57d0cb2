"""
Admirer service — domain-specific HTTP exceptions.

Every error carries a stable ``code`` (its kind) and a preset, display-ready
message so call sites never build either.  The kind classes map onto HTTP
status codes; concrete errors subclass the kind they belong to.  The handler
registered in main.py wraps them in the standard error envelope.
"""
from fastapi import HTTPException, status


class AdmirerError(HTTPException):
    code: str = "internal"
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "An unexpected error occurred.") -> None:
        super().__init__(status_code=self.http_status, detail=detail)


# ── Kinds ─────────────────────────────────────────────────────────────────────

class Unauthenticated(AdmirerError):
    code = "unauthenticated"
    http_status = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(AdmirerError):
    code = "permission-denied"
    http_status = status.HTTP_403_FORBIDDEN


class InvalidArgument(AdmirerError):
    code = "invalid-argument"
    http_status = status.HTTP_400_BAD_REQUEST


class FailedPrecondition(AdmirerError):
    code = "failed-precondition"
    http_status = status.HTTP_400_BAD_REQUEST


class AlreadyExists(AdmirerError):
    code = "already-exists"
    http_status = status.HTTP_409_CONFLICT


class ResourceExhausted(AdmirerError):
    code = "resource-exhausted"
    http_status = status.HTTP_429_TOO_MANY_REQUESTS


class Unavailable(AdmirerError):
    code = "unavailable"
    http_status = status.HTTP_502_BAD_GATEWAY


# ── Authentication ────────────────────────────────────────────────────────────

class SignInRequired(Unauthenticated):
    def __init__(self) -> None:
        super().__init__("Login required.")


class WrongSignInProvider(PermissionDenied):
    def __init__(self) -> None:
        super().__init__("Login with X is required.")


# ── Identity ──────────────────────────────────────────────────────────────────

class InvalidHandle(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("Handle must be 1-15 chars: a-z, 0-9, or _")


class HandleMismatch(PermissionDenied):
    """Client asked for a handle other than the one the session vouches for."""

    def __init__(self) -> None:
        super().__init__("That handle does not belong to the signed-in account.")


class HandleUnresolvable(FailedPrecondition):
    def __init__(self) -> None:
        super().__init__(
            "Could not read your X handle from this session. Please sign out and sign in again."
        )


class HandleTaken(AlreadyExists):
    def __init__(self) -> None:
        super().__init__("Handle already taken.")


class ExternalAccountLinked(PermissionDenied):
    def __init__(self) -> None:
        super().__init__("This X account is already linked to another user.")


class ProfileNotSynced(FailedPrecondition):
    def __init__(self) -> None:
        super().__init__("Your X profile is not synced. Sign out and sign in again.")


class ConsentRequired(FailedPrecondition):
    def __init__(self) -> None:
        super().__init__("Please accept the current Privacy Policy and Terms to continue.")


# ── Admirations ───────────────────────────────────────────────────────────────

class CannotAdmireSelf(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("You cannot add yourself.")


class TargetUnavailable(FailedPrecondition):
    """Unregistered and malformed-but-unknown handles get the same answer."""

    def __init__(self) -> None:
        super().__init__("That handle is not available right now.")


class InteractionBlocked(PermissionDenied):
    def __init__(self) -> None:
        super().__init__("You cannot interact with this user.")


class AlreadyAdmired(AlreadyExists):
    def __init__(self) -> None:
        super().__init__("You already added this person.")


class OutgoingLimitReached(ResourceExhausted):
    def __init__(self, limit: int) -> None:
        super().__init__(f"You can add max {limit} secret admirers.")


# ── Rate limiting ─────────────────────────────────────────────────────────────

class RateLimited(ResourceExhausted):
    def __init__(self) -> None:
        super().__init__("Too many requests. Please wait before trying again.")


# ── Safety ────────────────────────────────────────────────────────────────────

class InvalidReportReason(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("Report reason must be one of: harassment, impersonation, spam, other.")


class CannotReportSelf(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("You cannot report yourself.")


class CannotBlockSelf(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("You cannot block yourself.")


class NotBlocked(FailedPrecondition):
    def __init__(self) -> None:
        super().__init__("You have not blocked this user.")


# ── Account lifecycle ─────────────────────────────────────────────────────────

class InvalidDeleteConfirmation(InvalidArgument):
    def __init__(self) -> None:
        super().__init__("Type DELETE to confirm account deletion.")


class IdentityProviderUnavailable(Unavailable):
    """The identity provider refused or failed to delete the auth identity."""

    def __init__(self) -> None:
        super().__init__(
            "Your data was removed but sign-in deletion failed. Please try again shortly."
        )
