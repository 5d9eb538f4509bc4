from typing import Self

from types_aiobotocore_dynamodb.type_defs import UniversalAttributeValueTypeDef

from charging_payments.domain import PaymentProfile

from .base import BaseDTO


class PaymentProfileDTO(BaseDTO[PaymentProfile]):
    PK: str
    SK: str
    CustomerId: str
    GatewayCustomerId: str | None = None
    GatewayPaymentMethodId: str | None = None

    @staticmethod
    def key(customer_id: str) -> dict[str, UniversalAttributeValueTypeDef]:
        return {
            "PK": {"S": f"CUSTOMER#{customer_id}"},
            "SK": {"S": "#PAYMENT_PROFILE"},
        }

    @classmethod
    def from_entity(cls: type[Self], payment_profile: PaymentProfile) -> Self:
        return cls(
            PK=f"CUSTOMER#{payment_profile.customer_id}",
            SK="#PAYMENT_PROFILE",
            CustomerId=payment_profile.customer_id,
            GatewayCustomerId=payment_profile.gateway_customer_id,
            GatewayPaymentMethodId=payment_profile.gateway_payment_method_id,
        )

    def to_entity(self) -> PaymentProfile:
        return PaymentProfile(
            customer_id=self.CustomerId,
            gateway_customer_id=self.GatewayCustomerId,
            gateway_payment_method_id=self.GatewayPaymentMethodId,
        )
