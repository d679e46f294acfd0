import enum


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ApprovalStage(str, enum.Enum):
    """Who is expected to act next on a PENDING request."""
    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


class Decision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


TERMINAL_STATUSES = {RequestStatus.APPROVED.value, RequestStatus.REJECTED.value, RequestStatus.CANCELLED.value}
