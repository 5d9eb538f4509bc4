import pytest_asyncio
from types_aiobotocore_dynamodb import DynamoDBClient

from database_locks import DynamoDBPessimisticLock


@pytest_asyncio.fixture()
async def dynamodb_pessimistic_lock(
    dynamodb_client: DynamoDBClient, dynamodb_table_name: str
) -> DynamoDBPessimisticLock:
    return DynamoDBPessimisticLock(dynamodb_client, dynamodb_table_name)
