"""Storage signals raised by the payment repository."""

from leasehold.db.errors import RecordExistsError, RecordNotFoundError


class PaymentNotFoundError(RecordNotFoundError):
    entity = "payment"


class PaymentAlreadyExistsError(RecordExistsError):
    """Raised when a lease already has a payment due on the same date."""

    entity = "payment"


class PaymentLeaseMissingError(RecordNotFoundError):
    entity = "lease"
