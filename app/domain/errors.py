# app/domain/errors.py


class NotFoundError(LookupError):
    """Referenced row does not exist (404)."""


class ConflictError(Exception):
    """Request clashes with existing state (409)."""


class ConfirmationRequired(ConflictError):
    """Destructive operation needs an explicit confirmation flag."""

    def __init__(self, message: str, product_count: int):
        super().__init__(message)
        self.product_count = product_count


class PaymentProviderError(Exception):
    """Payment provider rejected the request or could not be reached (502)."""


class InvalidSignatureError(Exception):
    """Inbound provider callback failed signature verification (401)."""
