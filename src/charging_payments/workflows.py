"""Charging-session payment workflows.

Each workflow runs one gateway operation for a session and routes its outcome
through `sync_session_payment_status`. Capture, release, refresh and event
handling hold the session's pessimistic lock for the whole check-then-act
window, so a concurrent capture and release of the same session cannot both
pass their state checks.
"""

import datetime
from enum import StrEnum

import structlog

from .amounts import AmountMajor, to_major_units
from .domain import (
    AuthorizationStatus,
    ChargingSession,
    ChargingSessionNotFoundError,
    ErrorCode,
    PaymentFieldsUpdate,
    PaymentStatus,
)
from .payment_gateway import Authorization, PaymentGateway
from .repository import ChargingSessionRepository, PaymentProfileRepository
from .results import CaptureResult, HoldPlaced, HoldReleased, HoldResult, PaymentCaptured, PaymentFailure, ReleaseResult
from .settings import PaymentSettings
from .use_cases import (
    capture_payment,
    get_authorization_status,
    issue_payment_hold,
    release_payment_hold,
    sync_session_payment_status,
)

logger = structlog.get_logger(__name__)


class AuthorizationEventType(StrEnum):
    SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    CANCELED = "payment_intent.canceled"
    AMOUNT_CAPTURABLE_UPDATED = "payment_intent.amount_capturable_updated"


async def place_session_hold(
    session_id: str,
    sessions: ChargingSessionRepository,
    profiles: PaymentProfileRepository,
    payment_gateway: PaymentGateway,
    settings: PaymentSettings,
    *,
    amount: AmountMajor | None = None,
    currency: str | None = None,
    idempotency_key: str | None = None,
) -> HoldResult:
    async with sessions.lock(session_id) as session:
        if session.payment_status in (PaymentStatus.HOLD_OK, PaymentStatus.HOLD_PENDING) and (
            session.gateway_authorization_id
        ):
            logger.info("session_hold_already_placed", session_id=session_id)
            return HoldPlaced(
                authorization_id=session.gateway_authorization_id,
                status=session.payment_status,
                amount_cents=session.hold_amount_cents,
                currency=session.currency,
            )
        if session.payment_status.is_terminal:
            return PaymentFailure(
                error_code=ErrorCode.TERMINAL_STATE,
                error_message=f"Session payment is {session.payment_status}, cannot place a new hold",
            )
        if session.gateway_authorization_id:
            # A session references one authorization at a time; a replaced one must no longer hold funds.
            blocking_failure = await _previous_authorization_failure(session.gateway_authorization_id, payment_gateway)
            if blocking_failure is not None:
                logger.warning(
                    "session_hold_blocked_by_previous_authorization",
                    session_id=session_id,
                    authorization_id=session.gateway_authorization_id,
                    error_code=blocking_failure.error_code,
                )
                return blocking_failure

        result = await issue_payment_hold(
            session.customer_id,
            amount if amount is not None else to_major_units(settings.default_hold_amount_cents),
            profiles,
            payment_gateway,
            currency=currency or session.currency or settings.default_currency,
            session_id=session_id,
            idempotency_key=idempotency_key,
        )

        if isinstance(result, PaymentFailure):
            await _sync_failure(session_id, result, sessions)
        else:
            await sync_session_payment_status(
                session_id,
                PaymentFieldsUpdate(
                    payment_status=result.status,
                    gateway_authorization_id=result.authorization_id,
                    hold_amount_cents=result.amount_cents,
                    payment_last_error_code=None,
                    payment_last_error_message=None,
                ),
                sessions,
            )
        return result


async def capture_session_payment(
    session_id: str,
    sessions: ChargingSessionRepository,
    payment_gateway: PaymentGateway,
    *,
    amount: AmountMajor | None = None,
) -> CaptureResult:
    async with sessions.lock(session_id) as session:
        if session.payment_status == PaymentStatus.CAPTURED and session.gateway_authorization_id:
            return PaymentCaptured(
                authorization_id=session.gateway_authorization_id,
                amount_cents=session.captured_amount_cents,
                currency=session.currency,
                already_captured=True,
            )
        if session.payment_status == PaymentStatus.RELEASED:
            return PaymentFailure(
                error_code=ErrorCode.TERMINAL_STATE, error_message="Hold already released, cannot capture"
            )
        if not session.gateway_authorization_id:
            return PaymentFailure(
                error_code=ErrorCode.INVALID_STATE, error_message="No authorization found for this session"
            )

        result = await capture_payment(session.gateway_authorization_id, payment_gateway, amount=amount)

        if isinstance(result, PaymentCaptured):
            await sync_session_payment_status(
                session_id,
                PaymentFieldsUpdate(
                    payment_status=PaymentStatus.CAPTURED,
                    captured_amount_cents=result.amount_cents,
                    paid_at=session.paid_at or _now(),
                ),
                sessions,
            )
        elif result.error_code != ErrorCode.INVALID_REQUEST:
            await _sync_failure(session_id, result, sessions)
        return result


async def release_session_hold(
    session_id: str, sessions: ChargingSessionRepository, payment_gateway: PaymentGateway
) -> ReleaseResult:
    async with sessions.lock(session_id) as session:
        if session.payment_status == PaymentStatus.RELEASED and session.gateway_authorization_id:
            return HoldReleased(authorization_id=session.gateway_authorization_id, already_released=True)
        if session.payment_status == PaymentStatus.CAPTURED:
            return PaymentFailure(
                error_code=ErrorCode.TERMINAL_STATE, error_message="Payment already captured, cannot release"
            )
        if not session.gateway_authorization_id:
            return PaymentFailure(
                error_code=ErrorCode.INVALID_STATE, error_message="No authorization found for this session"
            )

        result = await release_payment_hold(session.gateway_authorization_id, payment_gateway)

        if isinstance(result, HoldReleased):
            await sync_session_payment_status(
                session_id, PaymentFieldsUpdate(payment_status=PaymentStatus.RELEASED), sessions
            )
        else:
            await _sync_failure(session_id, result, sessions)
        return result


async def refresh_session_hold(
    session_id: str, sessions: ChargingSessionRepository, payment_gateway: PaymentGateway
) -> ChargingSession:
    """Promote a HOLD_PENDING session once the gateway has settled its authorization.

    Meant to be polled by a reconciliation job. Sessions in any other state, and
    gateway lookups that fail, leave the session unchanged.
    """
    async with sessions.lock(session_id) as session:
        if session.payment_status != PaymentStatus.HOLD_PENDING or not session.gateway_authorization_id:
            return session

        snapshot = await get_authorization_status(session.gateway_authorization_id, payment_gateway)
        if isinstance(snapshot, PaymentFailure):
            logger.warning("session_hold_refresh_failed", session_id=session_id, error_code=snapshot.last_error_code)
            return session

        if snapshot.status == AuthorizationStatus.REQUIRES_CAPTURE:
            update = PaymentFieldsUpdate(payment_status=PaymentStatus.HOLD_OK)
        elif snapshot.status == AuthorizationStatus.SUCCEEDED:
            update = PaymentFieldsUpdate(
                payment_status=PaymentStatus.CAPTURED,
                captured_amount_cents=snapshot.amount_captured or snapshot.amount,
                paid_at=_now(),
            )
        elif snapshot.status in (AuthorizationStatus.CANCELED, AuthorizationStatus.FAILED):
            update = PaymentFieldsUpdate(
                payment_status=PaymentStatus.FAILED,
                payment_last_error_code=ErrorCode.GATEWAY_ERROR,
                payment_last_error_message=f"Authorization status is {snapshot.status}",
            )
        else:
            return session

        return await sync_session_payment_status(session_id, update, sessions)


async def handle_authorization_event(
    event_type: str, authorization: Authorization, sessions: ChargingSessionRepository
) -> ChargingSession | None:
    """Apply a gateway-pushed authorization event onto the session it was placed for.

    The session is found through the `session_id` metadata set when the hold was
    issued. Events for unknown sessions, or for an authorization the session no
    longer references, are ignored and return None.
    """
    log = logger.bind(event_type=event_type, authorization_id=authorization.id)
    session_id = authorization.metadata.get("session_id")
    if not session_id:
        log.warning("authorization_event_without_session")
        return None

    try:
        await sessions.get(session_id)
    except ChargingSessionNotFoundError:
        log.warning("authorization_event_session_not_found", session_id=session_id)
        return None

    async with sessions.lock(session_id) as session:
        return await _apply_authorization_event(event_type, authorization, session, sessions, log)


async def _apply_authorization_event(
    event_type: str,
    authorization: Authorization,
    session: ChargingSession,
    sessions: ChargingSessionRepository,
    log: structlog.stdlib.BoundLogger,
) -> ChargingSession:
    if session.gateway_authorization_id not in (None, authorization.id):
        log.info("authorization_event_for_stale_authorization", session_id=session.id)
        return session

    if event_type == AuthorizationEventType.SUCCEEDED:
        if session.payment_status == PaymentStatus.CAPTURED:
            return session
        update = PaymentFieldsUpdate(
            payment_status=PaymentStatus.CAPTURED,
            gateway_authorization_id=authorization.id,
            captured_amount_cents=authorization.amount_captured or authorization.amount,
            paid_at=session.paid_at or _now(),
        )
    elif event_type == AuthorizationEventType.PAYMENT_FAILED:
        if session.payment_status.is_terminal or session.payment_status == PaymentStatus.FAILED:
            return session
        update = PaymentFieldsUpdate(
            payment_status=PaymentStatus.FAILED,
            payment_last_error_code=authorization.last_error_code or ErrorCode.GATEWAY_ERROR,
            payment_last_error_message=authorization.last_error_message,
        )
    elif event_type == AuthorizationEventType.CANCELED:
        if session.payment_status not in (PaymentStatus.HOLD_OK, PaymentStatus.HOLD_PENDING, PaymentStatus.FAILED):
            return session
        update = PaymentFieldsUpdate(payment_status=PaymentStatus.RELEASED, gateway_authorization_id=authorization.id)
    elif event_type == AuthorizationEventType.AMOUNT_CAPTURABLE_UPDATED:
        if session.payment_status not in (PaymentStatus.NONE, PaymentStatus.HOLD_PENDING):
            return session
        update = PaymentFieldsUpdate(payment_status=PaymentStatus.HOLD_OK, gateway_authorization_id=authorization.id)
    else:
        log.debug("authorization_event_ignored")
        return session

    log.info("authorization_event_applied", session_id=session.id, payment_status=update.payment_status)
    return await sync_session_payment_status(session.id, update, sessions)


async def _previous_authorization_failure(
    authorization_id: str, payment_gateway: PaymentGateway
) -> PaymentFailure | None:
    snapshot = await get_authorization_status(authorization_id, payment_gateway)
    if isinstance(snapshot, PaymentFailure):
        return snapshot
    if snapshot.status in (AuthorizationStatus.CANCELED, AuthorizationStatus.FAILED):
        return None
    if snapshot.status == AuthorizationStatus.SUCCEEDED:
        return PaymentFailure(
            error_code=ErrorCode.TERMINAL_STATE,
            error_message=f"Authorization {authorization_id} is already captured, cannot place a new hold",
        )
    return PaymentFailure(
        error_code=ErrorCode.INVALID_STATE,
        error_message=(
            f"Authorization {authorization_id} is still {snapshot.status}, "
            "capture or release it before placing a new hold"
        ),
    )


async def _sync_failure(session_id: str, failure: PaymentFailure, sessions: ChargingSessionRepository) -> None:
    await sync_session_payment_status(
        session_id,
        PaymentFieldsUpdate(
            payment_status=PaymentStatus.FAILED,
            payment_last_error_code=failure.last_error_code,
            payment_last_error_message=failure.error_message,
        ),
        sessions,
    )


def _now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.UTC)
