class ChargingSessionIdentifierCollisionError(Exception):
    pass


class PaymentProfileLookupError(Exception):
    pass
