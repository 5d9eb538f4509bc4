from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator

import structlog
from aiobotocore.session import get_session
from types_aiobotocore_dynamodb import DynamoDBClient
from types_aiobotocore_dynamodb.type_defs import AttributeDefinitionTypeDef, KeySchemaElementTypeDef

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def create_client(
    *,
    region_name: str,
    endpoint_url: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
) -> AsyncGenerator[DynamoDBClient, None]:
    session = get_session()
    async with session.create_client(
        "dynamodb",
        region_name=region_name,
        endpoint_url=endpoint_url,
        aws_access_key_id=aws_access_key_id,
        aws_secret_access_key=aws_secret_access_key,
    ) as client:
        yield client


async def create_table(client: DynamoDBClient, table_name: str) -> None:
    """Create the single table holding sessions and payment profiles under `PK`/`SK` keys."""
    attribute_definitions: list[AttributeDefinitionTypeDef] = [
        {"AttributeName": "PK", "AttributeType": "S"},
        {"AttributeName": "SK", "AttributeType": "S"},
    ]
    key_schema: list[KeySchemaElementTypeDef] = [
        {"AttributeName": "PK", "KeyType": "HASH"},
        {"AttributeName": "SK", "KeyType": "RANGE"},
    ]
    with suppress(client.exceptions.ResourceInUseException):
        await client.create_table(
            TableName=table_name,
            AttributeDefinitions=attribute_definitions,
            KeySchema=key_schema,
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info("dynamodb_table_created", table_name=table_name)
