import datetime
import enum
from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Any, Final


class ChargingSessionNotFoundError(Exception):
    pass


class PaymentStatus(StrEnum):
    NONE = "NONE"
    HOLD_PENDING = "HOLD_PENDING"
    HOLD_OK = "HOLD_OK"
    FAILED = "FAILED"
    CAPTURED = "CAPTURED"
    RELEASED = "RELEASED"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.CAPTURED, PaymentStatus.RELEASED)


class AuthorizationStatus(StrEnum):
    REQUIRES_CAPTURE = "requires_capture"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"
    FAILED = "failed"


class ErrorCode(StrEnum):
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    INVALID_STATE = "INVALID_STATE"
    TERMINAL_STATE = "TERMINAL_STATE"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"


class _Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


@dataclass
class PaymentProfile:
    customer_id: str
    gateway_customer_id: str | None
    gateway_payment_method_id: str | None


@dataclass(frozen=True, kw_only=True)
class PaymentFieldsUpdate:
    """Partial set of session payment fields.

    A field left as `UNSET` is not written. `None` on a nullable field clears it.
    """

    payment_status: PaymentStatus | _Unset = UNSET
    gateway_authorization_id: str | None | _Unset = UNSET
    hold_amount_cents: int | _Unset = UNSET
    captured_amount_cents: int | _Unset = UNSET
    payment_last_error_code: str | None | _Unset = UNSET
    payment_last_error_message: str | None | _Unset = UNSET
    paid_at: datetime.datetime | None | _Unset = UNSET

    def __post_init__(self) -> None:
        for name in ("hold_amount_cents", "captured_amount_cents"):
            value = getattr(self, name)
            if value is not UNSET and (value is None or value < 0):
                raise ValueError(f"{name} must be a non-negative integer: {value}")

    def provided(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


class ChargingSession:
    def __init__(
        self,
        id: str,
        customer_id: str,
        currency: str,
        payment_status: PaymentStatus = PaymentStatus.NONE,
        gateway_authorization_id: str | None = None,
        hold_amount_cents: int = 0,
        captured_amount_cents: int = 0,
        payment_last_error_code: str | None = None,
        payment_last_error_message: str | None = None,
        paid_at: datetime.datetime | None = None,
    ) -> None:
        self._id = id
        self._customer_id = customer_id
        self._currency = currency
        self._payment_status = payment_status
        self._gateway_authorization_id = gateway_authorization_id
        self._hold_amount_cents = hold_amount_cents
        self._captured_amount_cents = captured_amount_cents
        self._payment_last_error_code = payment_last_error_code
        self._payment_last_error_message = payment_last_error_message
        self._paid_at = paid_at

    @property
    def id(self) -> str:
        return self._id

    @property
    def customer_id(self) -> str:
        return self._customer_id

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def payment_status(self) -> PaymentStatus:
        return self._payment_status

    @property
    def gateway_authorization_id(self) -> str | None:
        return self._gateway_authorization_id

    @property
    def hold_amount_cents(self) -> int:
        return self._hold_amount_cents

    @property
    def captured_amount_cents(self) -> int:
        return self._captured_amount_cents

    @property
    def payment_last_error_code(self) -> str | None:
        return self._payment_last_error_code

    @property
    def payment_last_error_message(self) -> str | None:
        return self._payment_last_error_message

    @property
    def paid_at(self) -> datetime.datetime | None:
        return self._paid_at

    @staticmethod
    def create(id: str, customer_id: str, currency: str) -> "ChargingSession":
        return ChargingSession(id=id, customer_id=customer_id, currency=currency)

    def is_in_sync_with(self, update: PaymentFieldsUpdate) -> bool:
        if update.payment_status is UNSET or update.payment_status != self._payment_status:
            return False
        if update.gateway_authorization_id is UNSET:
            return True
        return update.gateway_authorization_id == self._gateway_authorization_id

    def apply_payment_update(self, update: PaymentFieldsUpdate) -> None:
        for name, value in update.provided().items():
            setattr(self, f"_{name}", value)

    def __eq__(self, __value: object) -> bool:
        if not isinstance(__value, ChargingSession):
            raise NotImplementedError  # pragma: no cover
        return (
            self._id == __value._id
            and self._customer_id == __value._customer_id
            and self._currency == __value._currency
            and self._payment_status == __value._payment_status
            and self._gateway_authorization_id == __value._gateway_authorization_id
            and self._hold_amount_cents == __value._hold_amount_cents
            and self._captured_amount_cents == __value._captured_amount_cents
            and self._payment_last_error_code == __value._payment_last_error_code
            and self._payment_last_error_message == __value._payment_last_error_message
            and self._paid_at == __value._paid_at
        )

    def __repr__(self) -> str:
        return (
            f"ChargingSession(id={self._id!r}, payment_status={self._payment_status!r}, "
            f"gateway_authorization_id={self._gateway_authorization_id!r}, "
            f"hold_amount_cents={self._hold_amount_cents}, captured_amount_cents={self._captured_amount_cents})"
        )
