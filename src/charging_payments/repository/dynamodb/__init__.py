from .dto import ChargingSessionDTO, PaymentProfileDTO
from .repository import DynamoDBChargingSessionRepository, DynamoDBPaymentProfileRepository

__all__ = [
    "ChargingSessionDTO",
    "DynamoDBChargingSessionRepository",
    "DynamoDBPaymentProfileRepository",
    "PaymentProfileDTO",
]
