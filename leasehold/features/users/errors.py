"""Storage signals raised by the user repository."""

from leasehold.db.errors import RecordExistsError, RecordInUseError, RecordNotFoundError


class UserNotFoundError(RecordNotFoundError):
    entity = "user"


class UserAlreadyExistsError(RecordExistsError):
    """Raised when a user with the same email is already stored."""

    entity = "user"


class UserInUseError(RecordInUseError):
    """Raised when deleting a user that still owns properties or leases."""

    entity = "user"
