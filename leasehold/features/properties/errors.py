"""Storage signals raised by the property repository."""

from leasehold.db.errors import RecordInUseError, RecordNotFoundError


class PropertyNotFoundError(RecordNotFoundError):
    entity = "property"


class PropertyInUseError(RecordInUseError):
    """Raised when deleting a property that still has leases."""

    entity = "property"


class PropertyOwnerMissingError(RecordNotFoundError):
    """Raised when the owner row vanished between the check and the insert."""

    entity = "owner"
