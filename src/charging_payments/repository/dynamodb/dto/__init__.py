from .charging_session import ChargingSessionDTO
from .payment_profile import PaymentProfileDTO

__all__ = [
    "ChargingSessionDTO",
    "PaymentProfileDTO",
]
