class LibraryError(Exception):
    """Base exception for loan-lifecycle errors."""


class ValidationError(LibraryError, ValueError):
    """Malformed input: blank ids, bad dates, non-positive periods, negative copies."""


class NotFoundError(LibraryError, LookupError):
    """A referenced entity does not exist."""


class UserNotFoundError(NotFoundError):
    """Requested user id does not exist."""


class BookNotFoundError(NotFoundError):
    """Requested ISBN does not exist."""


class LoanNotFoundError(NotFoundError):
    """Requested loan id does not exist."""


class ConflictError(LibraryError):
    """Identity already taken on registration."""


class DuplicateIsbnError(ConflictError):
    """Trying to register a book whose ISBN is already registered."""


class DuplicateUserError(ConflictError):
    """Trying to register a user whose id is already registered."""


class NoCopiesAvailableError(LibraryError):
    """The book exists but has no copy left to lend."""


class InvalidStateTransitionError(LibraryError):
    """Operation not allowed in the entity's current state or format."""


class AlreadyReturnedError(InvalidStateTransitionError):
    """The loan has already been returned."""


class InventoryConsistencyError(InvalidStateTransitionError):
    """Copy counts would leave the 0 <= available <= total range."""


class BookOnLoanError(ConflictError):
    """Trying to delete a book that loans still reference."""
