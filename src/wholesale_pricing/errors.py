"""
Error taxonomy for the wholesale pricing core.

Every error carries the HTTP status the API layer reports for it. 4xx errors
expose their message to the caller; 5xx errors are reported with a generic
message and logged in full server-side.
"""
from typing import Optional


class WholesaleError(Exception):
    """Base class for all wholesale pricing errors."""
    status_code = 500
    public_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    @property
    def client_message(self) -> str:
        """Message safe to return to the caller."""
        if self.status_code >= 500:
            return self.public_message
        return self.message


class AuthenticationRequired(WholesaleError):
    """Missing/invalid credentials or portal access disabled."""
    status_code = 401
    public_message = "Vendor authorization required"


class AuthorizationMismatch(WholesaleError):
    """Caller-specified vendor id does not match the resolved vendor."""
    status_code = 403
    public_message = "Vendor id does not match the authenticated vendor"


class ValidationError(WholesaleError):
    """Empty cart or malformed payload."""
    status_code = 400
    public_message = "Invalid request"


class NotFoundError(WholesaleError):
    status_code = 404
    public_message = "Not found"


class ProductNotFoundError(NotFoundError):
    """A cart line references a product that is not available for wholesale."""

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} is not available for wholesale")
        self.product_id = product_id


class DependencyUnavailable(WholesaleError):
    """The document store is unreachable or misconfigured."""
    status_code = 500


class StoreError(DependencyUnavailable):
    """Raised by store implementations for any backend failure."""


class ReconciliationRequired(DependencyUnavailable):
    """
    Order persistence did not complete cleanly.

    The order may exist without its vendor ledger update (or, after a timeout,
    may or may not exist at all). ``order_number`` identifies the order to
    reconcile when it is known.
    """

    def __init__(self, message: str, order_number: Optional[str] = None):
        super().__init__(message)
        self.order_number = order_number


class ConflictError(WholesaleError):
    """Identifier collision. Absorbed internally, never surfaced as such."""
    status_code = 500


class DuplicateKeyError(ConflictError):
    """A create violated a store-level uniqueness key."""

    def __init__(self, field_name: str, value: str):
        super().__init__(f"Duplicate {field_name}: {value}")
        self.field_name = field_name
        self.value = value
