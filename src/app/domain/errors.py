from __future__ import annotations


class MarketplaceError(Exception):
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    status_code = 400


class ConflictError(MarketplaceError):
    status_code = 409


class UnauthorizedError(MarketplaceError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(MarketplaceError):
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(MarketplaceError):
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class InternalError(MarketplaceError):
    status_code = 500


class StoreError(InternalError):
    def __init__(self, operation: str, key: str, reason: str):
        super().__init__(f"Key-value store error during {operation} of '{key}': {reason}")
        self.operation = operation
        self.key = key
        self.reason = reason


class PartialOrderError(InternalError):
    def __init__(self, order_id: str, reason: str):
        super().__init__(f"Order {order_id} was saved but not fully indexed: {reason}")
        self.order_id = order_id
        self.reason = reason
