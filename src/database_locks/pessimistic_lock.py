import datetime
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Mapping

import structlog
from types_aiobotocore_dynamodb import DynamoDBClient
from types_aiobotocore_dynamodb.type_defs import UniversalAttributeValueTypeDef

from .time import now

logger = structlog.get_logger(__name__)


class PessimisticLockAcquisitionError(Exception):
    pass


class PessimisticLockReleaseError(Exception):
    pass


class DynamoDBPessimisticLock:
    """Advisory lock stored as attributes on an existing DynamoDB item.

    The lock is held while `__LockedAt` is set. Every acquisition writes a fresh
    owner token, and release only removes the lock attributes when the token
    still matches, so a holder whose stale lock was taken over cannot release
    the new holder's lock.
    """

    def __init__(
        self,
        client: DynamoDBClient,
        table_name: str,
        *,
        lock_timeout: datetime.timedelta | None = None,
        lock_attribute: str = "__LockedAt",
        owner_attribute: str = "__LockOwner",
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._lock_timeout = lock_timeout
        self._lock_attribute = lock_attribute
        self._owner_attribute = owner_attribute

    @asynccontextmanager
    async def __call__(self, key: Mapping[str, UniversalAttributeValueTypeDef]) -> AsyncGenerator[None, None]:
        owner = str(uuid.uuid4())
        await self._acquire_lock(key, owner)
        try:
            yield
        finally:
            await self._release_lock(key, owner)

    async def _acquire_lock(self, key: Mapping[str, UniversalAttributeValueTypeDef], owner: str) -> None:
        try:
            await self._client.update_item(
                TableName=self._table_name,
                Key=key,
                UpdateExpression="SET #LockAttribute = :LockAttribute, #OwnerAttribute = :Owner",
                ExpressionAttributeNames={
                    "#LockAttribute": self._lock_attribute,
                    "#OwnerAttribute": self._owner_attribute,
                },
                ExpressionAttributeValues={
                    ":LockAttribute": {"S": now().isoformat()},
                    ":Owner": {"S": owner},
                    **self._lock_timeout_attribute_value(),
                },
                ConditionExpression=f"{self._item_exists_expression(key)} AND {self._lock_not_acquired_expression()}",
            )
        except self._client.exceptions.ConditionalCheckFailedException as e:
            logger.info("pessimistic_lock_not_acquired", table_name=self._table_name, key=dict(key))
            raise PessimisticLockAcquisitionError(key) from e
        logger.debug("pessimistic_lock_acquired", table_name=self._table_name, key=dict(key), owner=owner)

    async def _release_lock(self, key: Mapping[str, UniversalAttributeValueTypeDef], owner: str) -> None:
        try:
            await self._client.update_item(
                TableName=self._table_name,
                Key=key,
                UpdateExpression="REMOVE #LockAttribute, #OwnerAttribute",
                ExpressionAttributeNames={
                    "#LockAttribute": self._lock_attribute,
                    "#OwnerAttribute": self._owner_attribute,
                },
                ExpressionAttributeValues={":Owner": {"S": owner}},
                ConditionExpression=f"{self._item_exists_expression(key)} AND #OwnerAttribute = :Owner",
            )
        except self._client.exceptions.ConditionalCheckFailedException as e:
            logger.warning("pessimistic_lock_lost", table_name=self._table_name, key=dict(key), owner=owner)
            raise PessimisticLockReleaseError(key) from e
        logger.debug("pessimistic_lock_released", table_name=self._table_name, key=dict(key), owner=owner)

    def _item_exists_expression(self, key: Mapping[str, UniversalAttributeValueTypeDef]) -> str:
        return " AND ".join(f"attribute_exists({k})" for k in key.keys())

    def _lock_timeout_attribute_value(self) -> dict:
        if not self._lock_timeout:
            return {}
        return {":LockExpiresAt": {"S": (now() - self._lock_timeout).isoformat()}}

    def _lock_not_acquired_expression(self) -> str:
        if not self._lock_timeout:
            return "attribute_not_exists(#LockAttribute)"
        return "(attribute_not_exists(#LockAttribute) OR :LockExpiresAt > #LockAttribute)"
