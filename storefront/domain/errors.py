# storefront/domain/errors.py
from typing import Iterable


class StoreError(Exception):
    """Base class for errors the checkout workflow reports to callers."""

    status_code = 500


class ValidationError(StoreError):
    status_code = 400


class VariantReferenceError(StoreError):
    status_code = 400

    def __init__(self, missing_ids: Iterable[str]):
        self.missing_ids = list(missing_ids)
        super().__init__(f"Product variants not found: {', '.join(self.missing_ids)}")


class InsufficientStockError(StoreError):
    status_code = 400

    def __init__(self, variant_id: str, requested: int, available: int):
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product variant {variant_id} "
            f"(requested {requested}, available {available})"
        )


class MetadataTooLargeError(StoreError):
    status_code = 400

    def __init__(self, field: str, length: int, limit: int):
        self.field = field
        self.length = length
        self.limit = limit
        super().__init__(f"Metadata {field} exceeds {limit} character limit ({length} characters)")


class InvalidSignatureError(StoreError):
    status_code = 400


class OrderNotFoundError(StoreError):
    status_code = 404

    def __init__(self, reference: str, by: str = "id"):
        self.reference = reference
        self.by = by
        super().__init__(f"Order not found ({by}={reference})")


class PaymentProviderError(StoreError):
    status_code = 502
