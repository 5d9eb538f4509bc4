from typing import Any
from unittest.mock import Mock

import pytest

from charging_payments.amounts import AmountMajor
from charging_payments.domain import ErrorCode, PaymentProfile, PaymentStatus
from charging_payments.payment_gateway import Authorization, AuthorizationRequest, PaymentGatewayError
from charging_payments.repository import PaymentProfileLookupError, PaymentProfileRepository
from charging_payments.results import HoldPlaced, PaymentFailure
from charging_payments.use_cases import issue_payment_hold


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
async def test_hold_placed(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock
) -> None:
    payment_gw_mock.create_authorization.return_value = authorization()

    result = await issue_payment_hold(
        "cust_123456", 50.00, profiles, payment_gw_mock, session_id="sess_123456", idempotency_key="hold-1"
    )

    assert result == HoldPlaced(
        authorization_id="pi_123456", status=PaymentStatus.HOLD_OK, amount_cents=5000, currency="EUR"
    )
    payment_gw_mock.create_authorization.assert_awaited_once_with(
        AuthorizationRequest(
            amount=5000,
            currency="EUR",
            gateway_customer_id="cus_ABC123",
            gateway_payment_method_id="pm_ABC123",
            metadata={"customer_id": "cust_123456", "session_id": "sess_123456", "type": "charging_session_hold"},
            idempotency_key="hold-1",
        )
    )


@pytest.mark.parametrize("status", ["requires_action", "processing"])
@pytest.mark.asyncio()
async def test_hold_pending_until_authorization_settles(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock, status: str
) -> None:
    payment_gw_mock.create_authorization.return_value = authorization(status=status)

    result = await issue_payment_hold("cust_123456", "50", profiles, payment_gw_mock, currency="eur")

    assert result == HoldPlaced(
        authorization_id="pi_123456", status=PaymentStatus.HOLD_PENDING, amount_cents=5000, currency="EUR"
    )


@pytest.mark.asyncio()
async def test_hold_failed_without_saved_payment_method(
    profiles: PaymentProfileRepository, payment_gw_mock: Mock
) -> None:
    await profiles.save(
        PaymentProfile(customer_id="cust_123456", gateway_customer_id="cus_ABC123", gateway_payment_method_id=None)
    )

    result = await issue_payment_hold("cust_123456", 50, profiles, payment_gw_mock)

    assert result == PaymentFailure(error_code=ErrorCode.CONFIGURATION_ERROR, error_message="No payment method found")
    assert result.status == PaymentStatus.FAILED
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.asyncio()
async def test_hold_failed_without_gateway_customer(profiles: PaymentProfileRepository, payment_gw_mock: Mock) -> None:
    await profiles.save(
        PaymentProfile(customer_id="cust_123456", gateway_customer_id=None, gateway_payment_method_id="pm_ABC123")
    )

    result = await issue_payment_hold("cust_123456", 50, profiles, payment_gw_mock)

    assert result == PaymentFailure(
        error_code=ErrorCode.CONFIGURATION_ERROR, error_message="No gateway customer id found"
    )
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.asyncio()
async def test_hold_failed_for_unknown_customer(profiles: PaymentProfileRepository, payment_gw_mock: Mock) -> None:
    result = await issue_payment_hold("cust_999999", 50, profiles, payment_gw_mock)

    assert result == PaymentFailure(error_code=ErrorCode.CONFIGURATION_ERROR, error_message="Customer not found")
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.asyncio()
async def test_hold_failed_when_payment_profile_lookup_fails(payment_gw_mock: Mock) -> None:
    profiles_mock = Mock(spec_set=PaymentProfileRepository)
    profiles_mock.get.side_effect = PaymentProfileLookupError("cust_123456")

    result = await issue_payment_hold("cust_123456", 50, profiles_mock, payment_gw_mock)

    assert isinstance(result, PaymentFailure)
    assert result.error_code == ErrorCode.CONFIGURATION_ERROR
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.parametrize("amount", [0, -10, "0.001", "abc", None])
@pytest.mark.asyncio()
async def test_hold_rejects_invalid_amount(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock, amount: AmountMajor
) -> None:
    result = await issue_payment_hold("cust_123456", amount, profiles, payment_gw_mock)

    assert isinstance(result, PaymentFailure)
    assert result.error_code == ErrorCode.INVALID_REQUEST
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.parametrize("currency", ["", "EURO", "E1R"])
@pytest.mark.asyncio()
async def test_hold_rejects_invalid_currency(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock, currency: str
) -> None:
    result = await issue_payment_hold("cust_123456", 50, profiles, payment_gw_mock, currency=currency)

    assert isinstance(result, PaymentFailure)
    assert result.error_code == ErrorCode.INVALID_REQUEST
    payment_gw_mock.create_authorization.assert_not_called()


@pytest.mark.asyncio()
async def test_hold_failed_on_gateway_error(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock
) -> None:
    payment_gw_mock.create_authorization.side_effect = PaymentGatewayError("card_declined", "Your card was declined.")

    result = await issue_payment_hold("cust_123456", 50, profiles, payment_gw_mock)

    assert result == PaymentFailure(
        error_code=ErrorCode.GATEWAY_ERROR,
        error_message="Your card was declined.",
        gateway_error_code="card_declined",
    )
    assert result.last_error_code == "card_declined"


@pytest.mark.parametrize("status", ["canceled", "failed"])
@pytest.mark.asyncio()
async def test_hold_failed_when_authorization_is_not_usable(
    customer_profile: PaymentProfile, profiles: PaymentProfileRepository, payment_gw_mock: Mock, status: str
) -> None:
    payment_gw_mock.create_authorization.return_value = authorization(
        status=status, last_error_code="card_declined", last_error_message="Your card was declined."
    )

    result = await issue_payment_hold("cust_123456", 50, profiles, payment_gw_mock)

    assert result == PaymentFailure(
        error_code=ErrorCode.GATEWAY_ERROR,
        error_message="Your card was declined.",
        gateway_error_code="card_declined",
    )
