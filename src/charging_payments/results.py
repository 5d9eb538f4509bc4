from dataclasses import dataclass

from .domain import ErrorCode, PaymentStatus


@dataclass(frozen=True, kw_only=True)
class PaymentFailure:
    error_code: ErrorCode
    error_message: str
    gateway_error_code: str | None = None
    status: PaymentStatus = PaymentStatus.FAILED

    @property
    def last_error_code(self) -> str:
        """Code persisted on the session: the provider's own code when there is one."""
        return self.gateway_error_code or self.error_code


@dataclass(frozen=True, kw_only=True)
class HoldPlaced:
    authorization_id: str
    status: PaymentStatus
    amount_cents: int
    currency: str


@dataclass(frozen=True, kw_only=True)
class PaymentCaptured:
    authorization_id: str
    amount_cents: int
    currency: str
    already_captured: bool = False
    status: PaymentStatus = PaymentStatus.CAPTURED


@dataclass(frozen=True, kw_only=True)
class HoldReleased:
    authorization_id: str
    already_released: bool = False
    status: PaymentStatus = PaymentStatus.RELEASED


@dataclass(frozen=True, kw_only=True)
class AuthorizationSnapshot:
    id: str
    status: str
    amount: int
    amount_captured: int
    currency: str


HoldResult = HoldPlaced | PaymentFailure
CaptureResult = PaymentCaptured | PaymentFailure
ReleaseResult = HoldReleased | PaymentFailure
StatusResult = AuthorizationSnapshot | PaymentFailure
