from contextlib import asynccontextmanager
from typing import AsyncGenerator, Protocol

from ..domain import ChargingSession, PaymentFieldsUpdate, PaymentProfile
from .dynamodb import DynamoDBChargingSessionRepository, DynamoDBPaymentProfileRepository
from .exceptions import ChargingSessionIdentifierCollisionError, PaymentProfileLookupError

__all__ = [
    "ChargingSessionIdentifierCollisionError",
    "ChargingSessionRepository",
    "DynamoDBChargingSessionRepository",
    "DynamoDBPaymentProfileRepository",
    "PaymentProfileLookupError",
    "PaymentProfileRepository",
]


class ChargingSessionRepository(Protocol):
    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncGenerator[ChargingSession, None]:
        yield  # type: ignore  # pragma: no cover

    async def get(self, session_id: str) -> ChargingSession:
        ...  # pragma: no cover

    async def create(self, session: ChargingSession) -> None:
        ...  # pragma: no cover

    async def update_payment_fields(self, session_id: str, update: PaymentFieldsUpdate) -> None:
        ...  # pragma: no cover


class PaymentProfileRepository(Protocol):
    async def get(self, customer_id: str) -> PaymentProfile | None:
        ...  # pragma: no cover

    async def save(self, payment_profile: PaymentProfile) -> None:
        ...  # pragma: no cover
