from typing import Any
from unittest.mock import Mock

import pytest

from charging_payments.amounts import AmountMajor
from charging_payments.domain import ErrorCode, PaymentStatus
from charging_payments.payment_gateway import Authorization, PaymentGatewayError
from charging_payments.results import PaymentCaptured, PaymentFailure
from charging_payments.use_cases import capture_payment


def authorization(**overrides: Any) -> Authorization:
    return Authorization(
        **{
            "id": "pi_123456",
            "status": "requires_capture",
            "amount": 5000,
            "amount_captured": 0,
            "currency": "EUR",
            **overrides,
        }
    )


@pytest.mark.asyncio()
async def test_partial_capture(payment_gw_mock: Mock) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization()
    payment_gw_mock.capture_authorization.return_value = authorization(status="succeeded", amount_captured=3250)

    result = await capture_payment("pi_123456", payment_gw_mock, amount=32.50)

    assert result == PaymentCaptured(authorization_id="pi_123456", amount_cents=3250, currency="EUR")
    assert result.status == PaymentStatus.CAPTURED
    payment_gw_mock.capture_authorization.assert_awaited_once_with("pi_123456", 3250)


@pytest.mark.asyncio()
async def test_full_capture_without_amount(payment_gw_mock: Mock) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization()
    payment_gw_mock.capture_authorization.return_value = authorization(status="succeeded", amount_captured=5000)

    result = await capture_payment("pi_123456", payment_gw_mock)

    assert result == PaymentCaptured(authorization_id="pi_123456", amount_cents=5000, currency="EUR")
    payment_gw_mock.capture_authorization.assert_awaited_once_with("pi_123456", None)


@pytest.mark.asyncio()
async def test_retried_capture_reports_already_captured(payment_gw_mock: Mock) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization(status="succeeded", amount_captured=3250)

    result = await capture_payment("pi_123456", payment_gw_mock, amount=32.50)

    assert result == PaymentCaptured(
        authorization_id="pi_123456", amount_cents=3250, currency="EUR", already_captured=True
    )
    payment_gw_mock.capture_authorization.assert_not_called()


@pytest.mark.asyncio()
async def test_already_captured_falls_back_to_authorized_amount(payment_gw_mock: Mock) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization(status="succeeded", amount_captured=0)

    result = await capture_payment("pi_123456", payment_gw_mock)

    assert isinstance(result, PaymentCaptured)
    assert result.amount_cents == 5000
    assert result.already_captured is True


@pytest.mark.parametrize("status", ["canceled", "requires_payment_method", "processing"])
@pytest.mark.asyncio()
async def test_capture_rejected_for_authorization_not_awaiting_capture(payment_gw_mock: Mock, status: str) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization(status=status)

    result = await capture_payment("pi_123456", payment_gw_mock)

    assert result == PaymentFailure(
        error_code=ErrorCode.INVALID_STATE, error_message=f"Authorization status is {status}, cannot capture"
    )
    payment_gw_mock.capture_authorization.assert_not_called()


@pytest.mark.parametrize("amount", [0, -1, 50.01, "abc"])
@pytest.mark.asyncio()
async def test_capture_rejects_amount_outside_authorization(payment_gw_mock: Mock, amount: AmountMajor) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization()

    result = await capture_payment("pi_123456", payment_gw_mock, amount=amount)

    assert isinstance(result, PaymentFailure)
    assert result.error_code == ErrorCode.INVALID_REQUEST
    payment_gw_mock.capture_authorization.assert_not_called()


@pytest.mark.parametrize("failing_method", ["retrieve_authorization", "capture_authorization"])
@pytest.mark.asyncio()
async def test_capture_failed_on_gateway_error(payment_gw_mock: Mock, failing_method: str) -> None:
    payment_gw_mock.retrieve_authorization.return_value = authorization()
    getattr(payment_gw_mock, failing_method).side_effect = PaymentGatewayError(
        "resource_missing", "No such payment_intent: 'pi_123456'"
    )

    result = await capture_payment("pi_123456", payment_gw_mock)

    assert result == PaymentFailure(
        error_code=ErrorCode.GATEWAY_ERROR,
        error_message="No such payment_intent: 'pi_123456'",
        gateway_error_code="resource_missing",
    )
