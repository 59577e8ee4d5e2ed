from datetime import date

import pytest

from bookloans.config import Settings
from bookloans.locks import KeyedLocks
from bookloans.repositories import BookRepo, LoanRepo, UserRepo
from bookloans.services import BookService, LoanService, UserService


class FixedClock:
    """Callable standing in for date.today; tests move it by assigning .today."""

    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock():
    return FixedClock(date(2024, 1, 1))


@pytest.fixture
def cfg():
    return Settings(default_loan_days=14, loan_id_prefix="LOAN", log_level="DEBUG")


@pytest.fixture
def users():
    return UserRepo()


@pytest.fixture
def books():
    return BookRepo()


@pytest.fixture
def loans():
    return LoanRepo()


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def user_service(users, locks):
    return UserService(users, locks)


@pytest.fixture
def book_service(books, locks, loans):
    return BookService(books, locks, loans)


@pytest.fixture
def loan_service(users, books, loans, cfg, clock, locks):
    return LoanService(users, books, loans, cfg, clock, locks)


@pytest.fixture
def stocked(user_service, book_service):
    """Two users, one physical book with two copies and one digital book."""
    user_service.register("12345", "Joadson")
    user_service.register("67890", "Paulo")
    book_service.register_physical("Clean Code", "Robert C. Martin", "978-0132350884", 2)
    book_service.register_digital("Dune", "Frank Herbert", "123-456")
