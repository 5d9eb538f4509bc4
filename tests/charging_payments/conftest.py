from unittest.mock import Mock

import pytest
import pytest_asyncio
from types_aiobotocore_dynamodb import DynamoDBClient

from charging_payments.domain import ChargingSession, PaymentProfile
from charging_payments.payment_gateway import PaymentGateway
from charging_payments.repository import DynamoDBChargingSessionRepository, DynamoDBPaymentProfileRepository


@pytest_asyncio.fixture()
async def sessions(dynamodb_client: DynamoDBClient, dynamodb_table_name: str) -> DynamoDBChargingSessionRepository:
    return DynamoDBChargingSessionRepository(dynamodb_client, dynamodb_table_name)


@pytest_asyncio.fixture()
async def profiles(dynamodb_client: DynamoDBClient, dynamodb_table_name: str) -> DynamoDBPaymentProfileRepository:
    return DynamoDBPaymentProfileRepository(dynamodb_client, dynamodb_table_name)


@pytest_asyncio.fixture()
async def customer_profile(profiles: DynamoDBPaymentProfileRepository) -> PaymentProfile:
    profile = PaymentProfile(
        customer_id="cust_123456",
        gateway_customer_id="cus_ABC123",
        gateway_payment_method_id="pm_ABC123",
    )
    await profiles.save(profile)
    return profile


@pytest_asyncio.fixture()
async def charging_session(
    sessions: DynamoDBChargingSessionRepository, customer_profile: PaymentProfile
) -> ChargingSession:
    session = ChargingSession.create(id="sess_123456", customer_id=customer_profile.customer_id, currency="EUR")
    await sessions.create(session)
    return session


@pytest.fixture()
def payment_gw_mock() -> Mock:
    return Mock(spec_set=PaymentGateway)
