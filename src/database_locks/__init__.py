from .pessimistic_lock import DynamoDBPessimisticLock, PessimisticLockAcquisitionError, PessimisticLockReleaseError

__all__ = [
    "DynamoDBPessimisticLock",
    "PessimisticLockAcquisitionError",
    "PessimisticLockReleaseError",
]
