from .amounts import to_major_units, to_minor_units
from .domain import (
    UNSET,
    AuthorizationStatus,
    ChargingSession,
    ChargingSessionNotFoundError,
    ErrorCode,
    PaymentFieldsUpdate,
    PaymentProfile,
    PaymentStatus,
)
from .results import AuthorizationSnapshot, HoldPlaced, HoldReleased, PaymentCaptured, PaymentFailure
from .use_cases import (
    capture_payment,
    get_authorization_status,
    issue_payment_hold,
    release_payment_hold,
    sync_session_payment_status,
)

__all__ = [
    "UNSET",
    "AuthorizationSnapshot",
    "AuthorizationStatus",
    "ChargingSession",
    "ChargingSessionNotFoundError",
    "ErrorCode",
    "HoldPlaced",
    "HoldReleased",
    "PaymentCaptured",
    "PaymentFailure",
    "PaymentFieldsUpdate",
    "PaymentProfile",
    "PaymentStatus",
    "capture_payment",
    "get_authorization_status",
    "issue_payment_hold",
    "release_payment_hold",
    "sync_session_payment_status",
    "to_major_units",
    "to_minor_units",
]
