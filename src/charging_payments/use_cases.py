import re
from decimal import InvalidOperation

import structlog

from .amounts import AmountMajor, to_minor_units
from .domain import AuthorizationStatus, ChargingSession, ErrorCode, PaymentFieldsUpdate, PaymentStatus
from .payment_gateway import AuthorizationRequest, PaymentGateway, PaymentGatewayError
from .repository import ChargingSessionRepository, PaymentProfileRepository
from .repository.exceptions import PaymentProfileLookupError
from .results import (
    AuthorizationSnapshot,
    CaptureResult,
    HoldPlaced,
    HoldReleased,
    HoldResult,
    PaymentCaptured,
    PaymentFailure,
    ReleaseResult,
    StatusResult,
)

logger = structlog.get_logger(__name__)

CURRENCY_CODE = re.compile(r"^[A-Za-z]{3}$")
HOLD_METADATA_TYPE = "charging_session_hold"


async def issue_payment_hold(
    customer_id: str,
    amount: AmountMajor,
    profiles: PaymentProfileRepository,
    payment_gateway: PaymentGateway,
    *,
    currency: str = "EUR",
    session_id: str | None = None,
    idempotency_key: str | None = None,
) -> HoldResult:
    log = logger.bind(customer_id=customer_id, session_id=session_id)

    if not CURRENCY_CODE.match(currency):
        return _failure(ErrorCode.INVALID_REQUEST, f"Invalid currency code: {currency!r}")
    try:
        amount_cents = to_minor_units(amount)
    except (InvalidOperation, TypeError, ValueError):
        return _failure(ErrorCode.INVALID_REQUEST, f"Invalid hold amount: {amount!r}")
    if amount_cents <= 0:
        return _failure(ErrorCode.INVALID_REQUEST, "Hold amount must be greater than 0")

    try:
        profile = await profiles.get(customer_id)
    except PaymentProfileLookupError as e:
        log.error("payment_profile_lookup_failed", error=str(e))
        return _failure(ErrorCode.CONFIGURATION_ERROR, f"Payment profile lookup failed: {e}")
    if profile is None:
        return _failure(ErrorCode.CONFIGURATION_ERROR, "Customer not found")
    if not profile.gateway_customer_id:
        return _failure(ErrorCode.CONFIGURATION_ERROR, "No gateway customer id found")
    if not profile.gateway_payment_method_id:
        return _failure(ErrorCode.CONFIGURATION_ERROR, "No payment method found")

    try:
        authorization = await payment_gateway.create_authorization(
            AuthorizationRequest(
                amount=amount_cents,
                currency=currency,
                gateway_customer_id=profile.gateway_customer_id,
                gateway_payment_method_id=profile.gateway_payment_method_id,
                metadata={
                    "customer_id": customer_id,
                    "session_id": session_id or "",
                    "type": HOLD_METADATA_TYPE,
                },
                idempotency_key=idempotency_key,
            )
        )
    except PaymentGatewayError as e:
        log.warning("payment_hold_failed", error_code=e.code, error_message=e.message)
        return _gateway_failure(e)

    if authorization.status in (AuthorizationStatus.CANCELED, AuthorizationStatus.FAILED):
        log.warning("payment_hold_rejected", authorization_id=authorization.id, status=authorization.status)
        return PaymentFailure(
            error_code=ErrorCode.GATEWAY_ERROR,
            error_message=authorization.last_error_message or f"Authorization status is {authorization.status}",
            gateway_error_code=authorization.last_error_code,
        )

    status = (
        PaymentStatus.HOLD_OK
        if authorization.status == AuthorizationStatus.REQUIRES_CAPTURE
        else PaymentStatus.HOLD_PENDING
    )
    log.info("payment_hold_placed", authorization_id=authorization.id, status=status, amount_cents=amount_cents)
    return HoldPlaced(
        authorization_id=authorization.id,
        status=status,
        amount_cents=amount_cents,
        currency=currency.upper(),
    )


async def capture_payment(
    authorization_id: str,
    payment_gateway: PaymentGateway,
    *,
    amount: AmountMajor | None = None,
) -> CaptureResult:
    log = logger.bind(authorization_id=authorization_id)

    try:
        authorization = await payment_gateway.retrieve_authorization(authorization_id)
    except PaymentGatewayError as e:
        log.warning("payment_capture_failed", error_code=e.code, error_message=e.message)
        return _gateway_failure(e)

    if authorization.status == AuthorizationStatus.SUCCEEDED:
        log.info("payment_already_captured", amount_cents=authorization.amount_captured)
        return PaymentCaptured(
            authorization_id=authorization.id,
            amount_cents=authorization.amount_captured or authorization.amount,
            currency=authorization.currency,
            already_captured=True,
        )

    if authorization.status != AuthorizationStatus.REQUIRES_CAPTURE:
        return _failure(ErrorCode.INVALID_STATE, f"Authorization status is {authorization.status}, cannot capture")

    amount_to_capture = None
    if amount is not None:
        try:
            amount_to_capture = to_minor_units(amount)
        except (InvalidOperation, TypeError, ValueError):
            return _failure(ErrorCode.INVALID_REQUEST, f"Invalid capture amount: {amount!r}")
        if not 0 < amount_to_capture <= authorization.amount:
            return _failure(
                ErrorCode.INVALID_REQUEST,
                f"Capture amount {amount_to_capture} must be between 1 and the authorized {authorization.amount}",
            )

    try:
        captured = await payment_gateway.capture_authorization(authorization_id, amount_to_capture)
    except PaymentGatewayError as e:
        log.warning("payment_capture_failed", error_code=e.code, error_message=e.message)
        return _gateway_failure(e)

    amount_cents = captured.amount_captured or captured.amount
    log.info("payment_captured", amount_cents=amount_cents, currency=captured.currency)
    return PaymentCaptured(
        authorization_id=captured.id,
        amount_cents=amount_cents,
        currency=captured.currency,
    )


async def release_payment_hold(authorization_id: str, payment_gateway: PaymentGateway) -> ReleaseResult:
    log = logger.bind(authorization_id=authorization_id)

    try:
        authorization = await payment_gateway.retrieve_authorization(authorization_id)
    except PaymentGatewayError as e:
        log.warning("payment_hold_release_failed", error_code=e.code, error_message=e.message)
        return _gateway_failure(e)

    if authorization.status == AuthorizationStatus.SUCCEEDED:
        return _failure(ErrorCode.TERMINAL_STATE, "Payment already captured, cannot release")

    if authorization.status == AuthorizationStatus.CANCELED:
        log.info("payment_hold_already_released")
        return HoldReleased(authorization_id=authorization.id, already_released=True)

    try:
        await payment_gateway.cancel_authorization(authorization_id)
    except PaymentGatewayError as e:
        log.warning("payment_hold_release_failed", error_code=e.code, error_message=e.message)
        return _gateway_failure(e)

    log.info("payment_hold_released")
    return HoldReleased(authorization_id=authorization.id)


async def get_authorization_status(authorization_id: str, payment_gateway: PaymentGateway) -> StatusResult:
    try:
        authorization = await payment_gateway.retrieve_authorization(authorization_id)
    except PaymentGatewayError as e:
        logger.warning(
            "authorization_status_failed", authorization_id=authorization_id, error_code=e.code, error_message=e.message
        )
        return _gateway_failure(e)
    return AuthorizationSnapshot(
        id=authorization.id,
        status=authorization.status,
        amount=authorization.amount,
        amount_captured=authorization.amount_captured,
        currency=authorization.currency,
    )


async def sync_session_payment_status(
    session_id: str, update: PaymentFieldsUpdate, repository: ChargingSessionRepository
) -> ChargingSession:
    """Persist payment outcome fields onto a charging session.

    Writes nothing when the requested status (and authorization id, if given)
    is already persisted. Raises `ChargingSessionNotFoundError` for an unknown
    session.
    """
    session = await repository.get(session_id)

    if session.is_in_sync_with(update):
        logger.debug("session_payment_status_unchanged", session_id=session_id, payment_status=update.payment_status)
        return session

    await repository.update_payment_fields(session_id, update)
    session.apply_payment_update(update)
    logger.info("session_payment_status_synced", session_id=session_id, **update.provided())
    return session


def _failure(error_code: ErrorCode, error_message: str) -> PaymentFailure:
    return PaymentFailure(error_code=error_code, error_message=error_message)


def _gateway_failure(error: PaymentGatewayError) -> PaymentFailure:
    return PaymentFailure(
        error_code=ErrorCode.GATEWAY_ERROR, error_message=error.message, gateway_error_code=error.code
    )
