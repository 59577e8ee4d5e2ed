from __future__ import annotations
from datetime import date
from typing import Callable, List, Optional, Tuple

from .config import Settings, configure_logging, settings
from .domain import Book, Loan, LoanReport, User
from .locks import KeyedLocks
from .repositories import BookRepo, LoanRepo, UserRepo
from .services import BookService, LoanService, UserService


class LibrarySystem:
    """
    A simple facade that wires the in-memory repos + services and offers a compact API.
    """

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.settings = cfg or settings
        configure_logging(self.settings)

        # repos
        self.users = UserRepo()
        self.books = BookRepo()
        self.loans = LoanRepo()

        # services share one lock registry so inventory edits and checkouts serialize per isbn
        self.locks = KeyedLocks()
        self.user_service = UserService(self.users, self.locks)
        self.catalog = BookService(self.books, self.locks, self.loans)
        self.circulation = LoanService(
            self.users, self.books, self.loans, self.settings, clock, self.locks
        )

    # ---- user module
    def add_user(self, user_id: str, name: str) -> User:
        return self.user_service.register(user_id, name)

    # ---- book/catalog module
    def add_physical_book(self, title: str, author: str, isbn: str, copies: int = 1) -> Book:
        return self.catalog.register_physical(title, author, isbn, copies)

    def add_digital_book(self, title: str, author: str, isbn: str) -> Book:
        return self.catalog.register_digital(title, author, isbn)

    def search_books(self, text: str) -> List[Book]:
        return self.catalog.search(text)

    # ---- circulation module
    def checkout(self, user_id: str, isbn: str, days: Optional[int] = None) -> Loan:
        return self.circulation.create_loan(user_id, isbn, period_days=days)

    def return_loan(self, loan_id: str) -> Loan:
        return self.circulation.return_loan(loan_id)

    # ---- reporting
    def report_overdue(self) -> List[Loan]:
        return self.circulation.get_overdue_loans()

    def loan_report(self) -> LoanReport:
        return self.circulation.generate_loan_report()

    def report_inventory(self) -> List[Tuple[Book, int, int]]:
        """
        Returns tuples of (Book, total_copies, available_copies) for physical books.
        """
        return [
            (book, book.total_copies, book.available_copies)
            for book in self.books.find_all()
            if book.is_physical
        ]
