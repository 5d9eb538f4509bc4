import datetime
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from botocore.exceptions import BotoCoreError, ClientError
from types_aiobotocore_dynamodb import DynamoDBClient

from charging_payments.domain import ChargingSession, ChargingSessionNotFoundError, PaymentFieldsUpdate, PaymentProfile
from database_locks import DynamoDBPessimisticLock

from ..exceptions import ChargingSessionIdentifierCollisionError, PaymentProfileLookupError
from .dto import ChargingSessionDTO, PaymentProfileDTO

logger = structlog.get_logger(__name__)


class DynamoDBChargingSessionRepository:
    def __init__(
        self, client: DynamoDBClient, table_name: str, *, lock_timeout: datetime.timedelta | None = None
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._lock = DynamoDBPessimisticLock(self._client, self._table_name, lock_timeout=lock_timeout)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncGenerator[ChargingSession, None]:
        # Lock acquisition fails on a missing item too; surface that as not found.
        await self.get(session_id)
        async with self._lock(ChargingSessionDTO.key(session_id)):
            yield await self.get(session_id)

    async def get(self, session_id: str) -> ChargingSession:
        response = await self._client.get_item(
            TableName=self._table_name,
            Key=ChargingSessionDTO.key(session_id),
            ConsistentRead=True,
        )
        item = response.get("Item")
        if item is None:
            raise ChargingSessionNotFoundError(session_id)
        return ChargingSessionDTO.from_dynamodb_item(item).to_entity()

    async def create(self, session: ChargingSession) -> None:
        try:
            await self._client.put_item(
                TableName=self._table_name,
                Item=ChargingSessionDTO.from_entity(session).to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(Id)",
            )
        except self._client.exceptions.ConditionalCheckFailedException as e:
            raise ChargingSessionIdentifierCollisionError(session.id) from e

    async def update_payment_fields(self, session_id: str, update: PaymentFieldsUpdate) -> None:
        if not update.provided():
            return
        try:
            await self._client.update_item(
                **ChargingSessionDTO.update_payment_fields_request(self._table_name, session_id, update)
            )
        except self._client.exceptions.ConditionalCheckFailedException as e:
            raise ChargingSessionNotFoundError(session_id) from e
        logger.debug("charging_session_payment_fields_updated", session_id=session_id, fields=list(update.provided()))


class DynamoDBPaymentProfileRepository:
    def __init__(self, client: DynamoDBClient, table_name: str) -> None:
        self._client = client
        self._table_name = table_name

    async def get(self, customer_id: str) -> PaymentProfile | None:
        try:
            response = await self._client.get_item(
                TableName=self._table_name,
                Key=PaymentProfileDTO.key(customer_id),
            )
        except (BotoCoreError, ClientError) as e:
            raise PaymentProfileLookupError(customer_id) from e
        item = response.get("Item")
        if item is None:
            return None
        return PaymentProfileDTO.from_dynamodb_item(item).to_entity()

    async def save(self, payment_profile: PaymentProfile) -> None:
        await self._client.put_item(
            TableName=self._table_name,
            Item=PaymentProfileDTO.from_entity(payment_profile).to_dynamodb_item(),
        )
