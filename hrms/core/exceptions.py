"""
Domain errors.

Services raise these; ``hrms.core.errors`` turns them into the JSON error
envelope. Subclasses fix the HTTP status and a default machine-readable code.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    status_code = 400
    error_code = "BUSINESS_ERROR"
    default_message = "Request could not be processed"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Invalid input. ``details`` maps field name to message."""
    status_code = 422
    error_code = "VALIDATION_ERROR"


class NotFoundError(AppException):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class AuthenticationError(AppException):
    status_code = 401
    error_code = "AUTH_FAILED"
    default_message = "Could not validate credentials"


class AccessDeniedError(AppException):
    status_code = 403
    error_code = "PERMISSION_DENIED"
    default_message = "Insufficient permissions"


# 400: the caller can retry with different input

class PolicyViolation(AppException):
    error_code = "POLICY_VIOLATION"


class OutsideGeoFenceError(PolicyViolation):
    error_code = "OUTSIDE_GEO_FENCE"

    def __init__(self, distance_meters: float, radius_meters: float):
        super().__init__(
            f"You are {distance_meters:.0f} m away from your office location "
            f"(allowed radius {radius_meters:.0f} m).",
            details={"distance_meters": round(distance_meters, 1), "radius_meters": radius_meters},
        )


class AlreadyCheckedInError(PolicyViolation):
    error_code = "ALREADY_CHECKED_IN"
    default_message = "You have already checked in today."


class AlreadyCheckedOutError(PolicyViolation):
    error_code = "ALREADY_CHECKED_OUT"
    default_message = "You have already checked out today."


class NotCheckedInError(PolicyViolation):
    error_code = "NOT_CHECKED_IN"
    default_message = "You have not checked in today."


class InsufficientBalanceError(PolicyViolation):
    error_code = "INSUFFICIENT_BALANCE"

    def __init__(self, leave_code: str, requested: float, available: float):
        super().__init__(
            f"Insufficient {leave_code} balance. Requested: {requested}, Available: {available}",
            details={"leave_type": leave_code, "requested": requested, "available": available},
        )


class WFHLimitExceededError(PolicyViolation):
    error_code = "WFH_LIMIT_EXCEEDED"

    def __init__(self, max_days: int):
        super().__init__(
            f"Work From Home can be requested for maximum {max_days} days per request.",
            details={"max_days": max_days},
        )


class OverlappingLeaveError(PolicyViolation):
    error_code = "OVERLAPPING_LEAVE"

    def __init__(self, other_request_id: int):
        super().__init__(
            "The requested dates overlap an existing leave request.",
            details={"request_id": other_request_id},
        )


# 409: the resource moved on; shown to the user, never retried silently

class StateConflict(AppException):
    status_code = 409
    error_code = "STATE_CONFLICT"


class NotPendingError(StateConflict):
    error_code = "NOT_PENDING"
    default_message = "Request has already been processed."


class AlreadyFinalizedError(StateConflict):
    error_code = "ALREADY_FINALIZED"

    def __init__(self, year: int, month: int):
        super().__init__(f"Payroll for {year}-{month:02d} has already been finalized.")
