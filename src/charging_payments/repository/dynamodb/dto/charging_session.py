import datetime
from typing import Any, ClassVar, Self

from types_aiobotocore_dynamodb.type_defs import UniversalAttributeValueTypeDef

from charging_payments.domain import ChargingSession, PaymentFieldsUpdate, PaymentStatus

from .base import BaseDTO


class ChargingSessionDTO(BaseDTO[ChargingSession]):
    PK: str
    SK: str
    Id: str
    CustomerId: str
    Currency: str
    Status: PaymentStatus
    AuthorizationId: str | None = None
    HoldAmountCents: int = 0
    CapturedAmountCents: int = 0
    LastErrorCode: str | None = None
    LastErrorMessage: str | None = None
    PaidAt: datetime.datetime | None = None

    PAYMENT_FIELD_ATTRIBUTES: ClassVar[dict[str, str]] = {
        "payment_status": "Status",
        "gateway_authorization_id": "AuthorizationId",
        "hold_amount_cents": "HoldAmountCents",
        "captured_amount_cents": "CapturedAmountCents",
        "payment_last_error_code": "LastErrorCode",
        "payment_last_error_message": "LastErrorMessage",
        "paid_at": "PaidAt",
    }

    @staticmethod
    def key(session_id: str) -> dict[str, UniversalAttributeValueTypeDef]:
        return {
            "PK": {"S": f"CHARGING_SESSION#{session_id}"},
            "SK": {"S": "#CHARGING_SESSION"},
        }

    @classmethod
    def from_entity(cls: type[Self], session: ChargingSession) -> Self:
        return cls(
            PK=f"CHARGING_SESSION#{session.id}",
            SK="#CHARGING_SESSION",
            Id=session.id,
            CustomerId=session.customer_id,
            Currency=session.currency,
            Status=session.payment_status,
            AuthorizationId=session.gateway_authorization_id,
            HoldAmountCents=session.hold_amount_cents,
            CapturedAmountCents=session.captured_amount_cents,
            LastErrorCode=session.payment_last_error_code,
            LastErrorMessage=session.payment_last_error_message,
            PaidAt=session.paid_at,
        )

    def to_entity(self) -> ChargingSession:
        return ChargingSession(
            id=self.Id,
            customer_id=self.CustomerId,
            currency=self.Currency,
            payment_status=self.Status,
            gateway_authorization_id=self.AuthorizationId,
            hold_amount_cents=self.HoldAmountCents,
            captured_amount_cents=self.CapturedAmountCents,
            payment_last_error_code=self.LastErrorCode,
            payment_last_error_message=self.LastErrorMessage,
            paid_at=self.PaidAt,
        )

    @classmethod
    def update_payment_fields_request(
        cls, table_name: str, session_id: str, update: PaymentFieldsUpdate
    ) -> dict[str, Any]:
        set_clauses: list[str] = []
        remove_clauses: list[str] = []
        names: dict[str, str] = {}
        values: dict[str, UniversalAttributeValueTypeDef] = {}

        for field_name, value in update.provided().items():
            attribute = cls.PAYMENT_FIELD_ATTRIBUTES[field_name]
            names[f"#{attribute}"] = attribute
            if value is None:
                remove_clauses.append(f"#{attribute}")
            else:
                set_clauses.append(f"#{attribute} = :{attribute}")
                values[f":{attribute}"] = cls._attribute_value(value)

        update_expression = " ".join(
            clause
            for clause in (
                f"SET {', '.join(set_clauses)}" if set_clauses else "",
                f"REMOVE {', '.join(remove_clauses)}" if remove_clauses else "",
            )
            if clause
        )
        request: dict[str, Any] = {
            "TableName": table_name,
            "Key": cls.key(session_id),
            "UpdateExpression": update_expression,
            "ExpressionAttributeNames": {**names, "#Id": "Id"},
            "ConditionExpression": "attribute_exists(#Id)",
        }
        if values:
            request["ExpressionAttributeValues"] = values
        return request

    @staticmethod
    def _attribute_value(value: Any) -> UniversalAttributeValueTypeDef:
        if isinstance(value, datetime.datetime):
            return {"S": value.isoformat()}
        if isinstance(value, int):
            return {"N": str(value)}
        return {"S": str(value)}
