import os
import uuid
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from moto.server import ThreadedMotoServer
from types_aiobotocore_dynamodb import DynamoDBClient

from adapters.dynamodb import create_client, create_table


@pytest.fixture(scope="session")
def dynamodb_endpoint_url() -> Generator[str, None, None]:
    if endpoint_url := os.getenv("DYNAMODB_ENDPOINT_URL"):
        yield endpoint_url
        return
    server = ThreadedMotoServer(ip_address="127.0.0.1", port=0, verbose=False)
    server.start()
    host, port = server.get_host_and_port()
    yield f"http://{host}:{port}"
    server.stop()


@pytest_asyncio.fixture()
async def dynamodb_client(dynamodb_endpoint_url: str) -> AsyncGenerator[DynamoDBClient, None]:
    async with create_client(
        region_name="eu-west-1",
        endpoint_url=dynamodb_endpoint_url,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    ) as client:
        yield client


@pytest_asyncio.fixture()
async def dynamodb_table_name(dynamodb_client: DynamoDBClient) -> AsyncGenerator[str, None]:
    table_name = f"autotest-charging-payments-{uuid.uuid4()}"
    await create_table(dynamodb_client, table_name)
    yield table_name
    await dynamodb_client.delete_table(TableName=table_name)
