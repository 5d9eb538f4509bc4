import datetime
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

import stripe
import structlog

from adapters.dynamodb import create_client

from .logging_config import configure_logging
from .payment_gateway import PaymentGateway
from .repository import DynamoDBChargingSessionRepository, DynamoDBPaymentProfileRepository
from .settings import Settings, get_settings
from .stripe_gateway import StripePaymentGateway

logger = structlog.get_logger(__name__)


@dataclass
class PaymentContext:
    settings: Settings
    sessions: DynamoDBChargingSessionRepository
    profiles: DynamoDBPaymentProfileRepository
    payment_gateway: PaymentGateway


@asynccontextmanager
async def payment_context(
    settings: Settings | None = None, *, payment_gateway: PaymentGateway | None = None
) -> AsyncGenerator[PaymentContext, None]:
    """Build the process-wide collaborators and close them on exit.

    `payment_gateway` replaces the Stripe gateway, e.g. with a test double.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, format_as_json=settings.log_json)

    lock_timeout = (
        datetime.timedelta(seconds=settings.payments.session_lock_timeout_seconds)
        if settings.payments.session_lock_timeout_seconds
        else None
    )

    async with create_client(
        region_name=settings.dynamodb.region_name, endpoint_url=settings.dynamodb.endpoint_url
    ) as dynamodb_client:
        http_client: stripe.HTTPXClient | None = None
        try:
            if payment_gateway is None:
                http_client = stripe.HTTPXClient()
                payment_gateway = StripePaymentGateway(
                    stripe.StripeClient(
                        settings.stripe.api_key,
                        http_client=http_client,
                        max_network_retries=settings.stripe.max_network_retries,
                    )
                )
            yield PaymentContext(
                settings=settings,
                sessions=DynamoDBChargingSessionRepository(
                    dynamodb_client, settings.dynamodb.table_name, lock_timeout=lock_timeout
                ),
                profiles=DynamoDBPaymentProfileRepository(dynamodb_client, settings.dynamodb.table_name),
                payment_gateway=payment_gateway,
            )
        finally:
            if http_client is not None:
                await http_client.close_async()
            logger.debug("payment_context_closed")
