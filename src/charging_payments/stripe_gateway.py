from typing import Any

import stripe
import structlog

from .payment_gateway import Authorization, AuthorizationRequest, PaymentGatewayError

logger = structlog.get_logger(__name__)


class StripePaymentGateway:
    """`PaymentGateway` backed by Stripe PaymentIntents with manual capture.

    Reference: https://docs.stripe.com/payments/place-a-hold-on-a-payment-method
    """

    def __init__(self, client: stripe.StripeClient) -> None:
        self._client = client

    async def create_authorization(self, request: AuthorizationRequest) -> Authorization:
        params: dict[str, Any] = {
            "amount": request.amount,
            "currency": request.currency.lower(),
            "customer": request.gateway_customer_id,
            "payment_method": request.gateway_payment_method_id,
            "capture_method": "manual",
            "confirm": True,
            "off_session": True,
            "metadata": request.metadata,
        }
        options: dict[str, Any] = {}
        if request.idempotency_key:
            options["idempotency_key"] = request.idempotency_key
        try:
            payment_intent = await self._client.v1.payment_intents.create_async(
                params, options  # type: ignore[arg-type]
            )
        except stripe.StripeError as e:
            raise self._gateway_error(e, "create_authorization") from e
        return self._to_authorization(payment_intent)

    async def retrieve_authorization(self, authorization_id: str) -> Authorization:
        try:
            payment_intent = await self._client.v1.payment_intents.retrieve_async(authorization_id)
        except stripe.StripeError as e:
            raise self._gateway_error(e, "retrieve_authorization", authorization_id) from e
        return self._to_authorization(payment_intent)

    async def capture_authorization(self, authorization_id: str, amount_to_capture: int | None = None) -> Authorization:
        params: dict[str, Any] = {}
        if amount_to_capture is not None:
            params["amount_to_capture"] = amount_to_capture
        try:
            payment_intent = await self._client.v1.payment_intents.capture_async(
                authorization_id, params  # type: ignore[arg-type]
            )
        except stripe.StripeError as e:
            raise self._gateway_error(e, "capture_authorization", authorization_id) from e
        return self._to_authorization(payment_intent)

    async def cancel_authorization(self, authorization_id: str) -> Authorization:
        try:
            payment_intent = await self._client.v1.payment_intents.cancel_async(authorization_id)
        except stripe.StripeError as e:
            raise self._gateway_error(e, "cancel_authorization", authorization_id) from e
        return self._to_authorization(payment_intent)

    @staticmethod
    def _gateway_error(
        error: stripe.StripeError, operation: str, authorization_id: str | None = None
    ) -> PaymentGatewayError:
        code = error.code or (error.error.type if error.error else None) or type(error).__name__
        message = error.user_message or str(error)
        logger.warning(
            "stripe_request_failed",
            operation=operation,
            authorization_id=authorization_id,
            error_code=code,
            error_message=message,
            http_status=error.http_status,
        )
        return PaymentGatewayError(code, message)

    @staticmethod
    def _to_authorization(payment_intent: stripe.PaymentIntent) -> Authorization:
        last_error = payment_intent.last_payment_error
        return Authorization(
            id=payment_intent.id,
            status=payment_intent.status,
            amount=payment_intent.amount,
            amount_captured=payment_intent.amount_received or 0,
            currency=payment_intent.currency.upper(),
            metadata=dict(payment_intent.metadata or {}),
            last_error_code=getattr(last_error, "code", None),
            last_error_message=getattr(last_error, "message", None),
        )
