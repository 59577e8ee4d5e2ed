"""
Book loans package.

Exports key modules for convenient imports.
"""

from .domain import (
    BookFormat,
    Inventory,
    Book,
    User,
    LoanStatus,
    Loan,
    LoanReport,
)

from .errors import (
    LibraryError,
    ValidationError,
    NotFoundError,
    UserNotFoundError,
    BookNotFoundError,
    LoanNotFoundError,
    ConflictError,
    BookOnLoanError,
    DuplicateIsbnError,
    DuplicateUserError,
    NoCopiesAvailableError,
    InvalidStateTransitionError,
    AlreadyReturnedError,
    InventoryConsistencyError,
)

from .repositories import (
    BookRepository,
    UserRepository,
    LoanRepository,
    BookRepo,
    UserRepo,
    LoanRepo,
)

from .services import (
    UserService,
    BookService,
    LoanService,
)

from .config import Settings, settings, configure_logging
from .api import LibrarySystem

__all__ = [
    # domain
    "BookFormat",
    "Inventory",
    "Book",
    "User",
    "LoanStatus",
    "Loan",
    "LoanReport",
    # errors
    "LibraryError",
    "ValidationError",
    "NotFoundError",
    "UserNotFoundError",
    "BookNotFoundError",
    "LoanNotFoundError",
    "ConflictError",
    "BookOnLoanError",
    "DuplicateIsbnError",
    "DuplicateUserError",
    "NoCopiesAvailableError",
    "InvalidStateTransitionError",
    "AlreadyReturnedError",
    "InventoryConsistencyError",
    # repos
    "BookRepository",
    "UserRepository",
    "LoanRepository",
    "BookRepo",
    "UserRepo",
    "LoanRepo",
    # services
    "UserService",
    "BookService",
    "LoanService",
    # config
    "Settings",
    "settings",
    "configure_logging",
    # api
    "LibrarySystem",
]
