from dataclasses import dataclass, field
from typing import Protocol


class PaymentGatewayError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True, kw_only=True)
class AuthorizationRequest:
    amount: int
    currency: str
    gateway_customer_id: str
    gateway_payment_method_id: str
    metadata: dict[str, str] = field(default_factory=dict)
    idempotency_key: str | None = None


@dataclass(frozen=True, kw_only=True)
class Authorization:
    id: str
    status: str
    amount: int
    amount_captured: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    last_error_code: str | None = None
    last_error_message: str | None = None


class PaymentGateway(Protocol):
    """Manual-capture authorizations on a payment provider.

    Amounts are in minor units. Every method raises `PaymentGatewayError` when
    the provider rejects the request or cannot be reached.
    """

    async def create_authorization(self, request: AuthorizationRequest) -> Authorization:
        ...  # pragma: no cover

    async def retrieve_authorization(self, authorization_id: str) -> Authorization:
        ...  # pragma: no cover

    async def capture_authorization(self, authorization_id: str, amount_to_capture: int | None = None) -> Authorization:
        ...  # pragma: no cover

    async def cancel_authorization(self, authorization_id: str) -> Authorization:
        ...  # pragma: no cover
