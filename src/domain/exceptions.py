"""Domain Exceptions

Raised by entities and repositories, translated to error codes by use cases.
"""


class BillingDomainError(Exception):
    pass


class InvalidStatusTransition(BillingDomainError):
    """Raised when an entity is asked to move to a status it cannot reach"""

    def __init__(self, entity: str, current, target):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            f"{entity} cannot transition from {getattr(current, 'value', current)} "
            f"to {getattr(target, 'value', target)}"
        )


class ConcurrentModificationError(BillingDomainError):
    """Raised when a versioned update matched no row"""

    def __init__(self, entity: str, entity_id: str, expected_version: int):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class StoreUnavailableError(BillingDomainError):
    """Raised when the backing store rejects or cannot serve a request"""
    pass


class DuplicateEntityError(BillingDomainError):
    """Raised when an insert collides with a unique key"""
    pass
