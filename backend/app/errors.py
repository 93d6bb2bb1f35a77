"""
errors.py — AppError base class and error code registry.

Every error returned by the API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

Status mapping:
  NotFound   → 404  (referenced entity absent or soft-deleted)
  Forbidden  → 403  (authenticated, but not lead / host / author / self)
  Conflict   → 409  (state invariant violated: duplicate join, capacity,
                     wrong lifecycle stage, time window)
  BadRequest → 400  (schema violation, explicit null on a non-nullable field)
  401 is reserved for authentication failures raised by the middleware.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# These are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    NULL_FIELD                 = "NULL_FIELD"
    INVALID_DECISION           = "INVALID_DECISION"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    CLUB_NOT_FOUND             = "CLUB_NOT_FOUND"
    EVENT_NOT_FOUND            = "EVENT_NOT_FOUND"
    REVIEW_NOT_FOUND           = "REVIEW_NOT_FOUND"
    CATEGORY_NOT_FOUND         = "CATEGORY_NOT_FOUND"
    CITY_NOT_FOUND             = "CITY_NOT_FOUND"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"

    # club membership workflow
    ALREADY_MEMBER             = "ALREADY_MEMBER"
    ALREADY_WAITING            = "ALREADY_WAITING"
    JOIN_REJECTED              = "JOIN_REJECTED"
    NOT_WAITING                = "NOT_WAITING"
    NOT_MEMBER                 = "NOT_MEMBER"
    LEAD_CANNOT_LEAVE          = "LEAD_CANNOT_LEAVE"
    CLUB_FULL                  = "CLUB_FULL"

    # capacity edits (clubs and events)
    CAPACITY_BELOW_MEMBERS     = "CAPACITY_BELOW_MEMBERS"

    # event participation and time windows
    ALREADY_JOINED             = "ALREADY_JOINED"
    NOT_JOINED                 = "NOT_JOINED"
    HOST_CANNOT_LEAVE          = "HOST_CANNOT_LEAVE"
    EVENT_FULL                 = "EVENT_FULL"
    EVENT_STARTED              = "EVENT_STARTED"
    EVENT_ENDED                = "EVENT_ENDED"
    START_TIME_IN_PAST         = "START_TIME_IN_PAST"
    INVALID_TIME_RANGE         = "INVALID_TIME_RANGE"

    # reviews
    REVIEW_EXISTS              = "REVIEW_EXISTS"
    EVENT_NOT_ENDED            = "EVENT_NOT_ENDED"
    SELF_REVIEW                = "SELF_REVIEW"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"  # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"
