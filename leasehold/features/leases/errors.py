"""Storage signals raised by the lease repository."""

from leasehold.db.errors import RecordExistsError, RecordNotFoundError


class LeaseNotFoundError(RecordNotFoundError):
    entity = "lease"


class ActiveLeaseExistsError(RecordExistsError):
    """Raised when a property would end up with two active leases."""

    entity = "active lease for property"


class LeaseReferenceMissingError(RecordNotFoundError):
    """Raised when the property or tenant vanished before the insert."""

    entity = "lease reference"
