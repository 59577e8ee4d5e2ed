from __future__ import annotations
from collections import Counter
from datetime import date, timedelta
from typing import Callable, List, Optional
import logging
import uuid

from .config import Settings, settings
from .domain import (
    Book,
    BookFormat,
    Loan,
    LoanReport,
    User,
    require_date,
    require_text,
)
from .errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookOnLoanError,
    DuplicateIsbnError,
    DuplicateUserError,
    InvalidStateTransitionError,
    LoanNotFoundError,
    NoCopiesAvailableError,
    UserNotFoundError,
    ValidationError,
)
from .locks import KeyedLocks
from .repositories import BookRepository, LoanRepository, UserRepository

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


# lock keys are namespaced so one KeyedLocks can be shared by all services
def _isbn_key(isbn: str) -> str:
    return f"isbn:{isbn}"


def _user_key(user_id: str) -> str:
    return f"user:{user_id}"


def _loan_key(loan_id: str) -> str:
    return f"loan:{loan_id}"


class UserService:
    def __init__(self, users: UserRepository, locks: Optional[KeyedLocks] = None) -> None:
        self.users = users
        self.locks = locks if locks is not None else KeyedLocks()

    def register(self, user_id: str, name: str) -> User:
        require_text(user_id, "User ID")
        require_text(name, "User name")
        with self.locks.hold(_user_key(user_id)):
            if self.users.exists_by_id(user_id):
                raise DuplicateUserError(f"User with ID {user_id} already exists.")
            user = self.users.save(User(user_id=user_id, name=name))
        logger.info("[users] registered %s (%s)", user.user_id, user.name)
        return user

    def find_by_id(self, user_id: str) -> User:
        require_text(user_id, "User ID")
        user = self.users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User not found with ID: {user_id}")
        return user

    def update(self, user_id: str, new_name: str) -> User:
        require_text(new_name, "User name")
        with self.locks.hold(_user_key(user_id)):
            user = self.find_by_id(user_id)
            user.rename(new_name)
            return self.users.save(user)

    def list_all(self) -> List[User]:
        return self.users.find_all()


class BookService:
    def __init__(
        self,
        books: BookRepository,
        locks: Optional[KeyedLocks] = None,
        loans: Optional[LoanRepository] = None,
    ) -> None:
        self.books = books
        self.loans = loans
        self.locks = locks if locks is not None else KeyedLocks()

    def register_physical(self, title: str, author: str, isbn: str, total_copies: int) -> Book:
        require_text(isbn, "ISBN")
        with self.locks.hold(_isbn_key(isbn)):
            self._ensure_unused(isbn)
            book = self.books.save(Book.physical(title, author, isbn, total_copies))
        logger.info("[catalog] registered physical book %s with %d copies", isbn, total_copies)
        return book

    def register_digital(self, title: str, author: str, isbn: str) -> Book:
        require_text(isbn, "ISBN")
        with self.locks.hold(_isbn_key(isbn)):
            self._ensure_unused(isbn)
            book = self.books.save(Book.digital(title, author, isbn))
        logger.info("[catalog] registered digital book %s", isbn)
        return book

    def _ensure_unused(self, isbn: str) -> None:
        if self.books.exists_by_isbn(isbn):
            logger.warning("[catalog] duplicate ISBN %s rejected", isbn)
            raise DuplicateIsbnError(f"A book with this ISBN already exists: {isbn}")

    def find_by_isbn(self, isbn: str) -> Book:
        require_text(isbn, "ISBN")
        book = self.books.find_by_isbn(isbn)
        if book is None:
            raise BookNotFoundError(f"Book not found with ISBN: {isbn}")
        return book

    def list_all(self) -> List[Book]:
        return self.books.find_all()

    def search(self, text: str) -> List[Book]:
        t = require_text(text, "Search text").lower().strip()

        def matches(b: Book) -> bool:
            return t in b.title.lower() or t in b.author.lower() or t in b.isbn.lower()

        return [b for b in self.books.find_all() if matches(b)]

    def update_details(self, isbn: str, title: str, author: str) -> Book:
        with self.locks.hold(_isbn_key(isbn)):
            book = self.find_by_isbn(isbn)
            book.update_details(title, author)
            return self.books.save(book)

    def set_total_copies(self, isbn: str, total_copies: int) -> Book:
        with self.locks.hold(_isbn_key(isbn)):
            book = self.find_by_isbn(isbn)
            book.set_total_copies(total_copies)
            logger.info("[catalog] %s now has %d copies", isbn, total_copies)
            return self.books.save(book)

    def update_physical(self, isbn: str, title: str, author: str, total_copies: int) -> Book:
        require_text(title, "Title")
        require_text(author, "Author")
        with self.locks.hold(_isbn_key(isbn)):
            book = self._find_of_kind(isbn, BookFormat.PHYSICAL)
            book.set_total_copies(total_copies)
            book.update_details(title, author)
            return self.books.save(book)

    def update_digital(self, isbn: str, title: str, author: str) -> Book:
        with self.locks.hold(_isbn_key(isbn)):
            book = self._find_of_kind(isbn, BookFormat.DIGITAL)
            book.update_details(title, author)
            return self.books.save(book)

    def _find_of_kind(self, isbn: str, kind: BookFormat) -> Book:
        book = self.find_by_isbn(isbn)
        if book.kind is not kind:
            raise InvalidStateTransitionError(
                f"Book with ISBN {isbn} is not a {kind.name.lower()} book."
            )
        return book

    def delete(self, isbn: str) -> None:
        require_text(isbn, "ISBN")
        with self.locks.hold(_isbn_key(isbn)):
            if not self.books.exists_by_isbn(isbn):
                raise BookNotFoundError(f"Book not found with ISBN: {isbn}")
            # loans resolve their book by isbn, so a referenced book must stay
            if self.loans is not None and self.loans.find_by_book_isbn(isbn):
                logger.warning("[catalog] refused to delete %s, it has loans", isbn)
                raise BookOnLoanError(f"Book with ISBN {isbn} is referenced by loans and cannot be deleted.")
            self.books.delete_by_isbn(isbn)
        logger.info("[catalog] deleted %s", isbn)


class LoanService:
    """
    Borrow / return / reporting rules over the three repositories.

    A loan is ACTIVE from creation until it is returned; RETURNED is terminal.
    Checkout holds the isbn lock then the user lock; return holds the loan lock
    then the isbn lock.
    """

    def __init__(
        self,
        users: UserRepository,
        books: BookRepository,
        loans: LoanRepository,
        cfg: Settings = settings,
        clock: Callable[[], date] = date.today,
        locks: Optional[KeyedLocks] = None,
    ) -> None:
        self.users = users
        self.books = books
        self.loans = loans
        self.clock = clock
        self.locks = locks if locks is not None else KeyedLocks()

        self.default_loan_days = cfg.default_loan_days
        self.loan_id_prefix = cfg.loan_id_prefix

    def create_loan(
        self,
        user_id: str,
        isbn: str,
        loan_date: Optional[date] = None,
        period_days: Optional[int] = None,
    ) -> Loan:
        require_text(user_id, "User ID")
        require_text(isbn, "ISBN")
        loan_date = require_date(loan_date or self.clock(), "Loan date")
        if period_days is None:
            period_days = self.default_loan_days
        if isinstance(period_days, bool) or not isinstance(period_days, int) or period_days <= 0:
            raise ValidationError(f"Loan period must be a positive number of days, got {period_days!r}.")

        with self.locks.hold(_isbn_key(isbn)), self.locks.hold(_user_key(user_id)):
            user = self.users.find_by_id(user_id)
            if user is None:
                raise UserNotFoundError(f"User not found with ID: {user_id}")
            book = self.books.find_by_isbn(isbn)
            if book is None:
                raise BookNotFoundError(f"Book not found with ISBN: {isbn}")
            if not book.is_available_for_loan():
                logger.warning("[checkout] no copies available for %s (user=%s)", isbn, user_id)
                raise NoCopiesAvailableError(f"No copies available for book: {book.title} (ISBN: {isbn})")

            loan = Loan(
                loan_id=_new_id(self.loan_id_prefix),
                user_id=user_id,
                isbn=isbn,
                loan_date=loan_date,
                due_date=loan_date + timedelta(days=period_days),
            )
            book.register_loan()
            try:
                self.books.save(book)
                self.loans.save(loan)
                user.record_loan(loan.loan_id)
                self.users.save(user)
            except Exception:
                logger.exception("[checkout] persisting loan %s failed, rolling back", loan.loan_id)
                self._undo_checkout(book, user, loan)
                raise

        logger.info("[checkout] loan %s: %s -> %s, due %s", loan.loan_id, isbn, user_id, loan.due_date)
        return loan

    def _undo_checkout(self, book: Book, user: User, loan: Loan) -> None:
        book.register_return()
        self.books.save(book)
        self.loans.delete_by_id(loan.loan_id)
        if user.loan_history and user.loan_history[-1] == loan.loan_id:
            user.loan_history.pop()
            self.users.save(user)

    def return_loan(self, loan_id: str, return_date: Optional[date] = None) -> Loan:
        require_text(loan_id, "Loan ID")
        return_date = require_date(return_date or self.clock(), "Return date")

        with self.locks.hold(_loan_key(loan_id)):
            loan = self.find_loan_by_id(loan_id)
            if loan.returned:
                logger.warning("[return] loan %s already returned", loan_id)
                raise AlreadyReturnedError(f"Loan {loan_id} has already been returned.")
            if return_date < loan.loan_date:
                raise ValidationError(
                    f"Loan {loan_id}: return date {return_date} is before loan date {loan.loan_date}."
                )

            with self.locks.hold(_isbn_key(loan.isbn)):
                book = self.books.find_by_isbn(loan.isbn)
                if book is None:
                    raise BookNotFoundError(f"Book not found with ISBN: {loan.isbn} (loan {loan_id})")
                book.register_return()
                loan.mark_returned(return_date)
                self.books.save(book)
                self.loans.save(loan)

        logger.info("[return] loan %s returned on %s", loan_id, return_date)
        return loan

    # ---- queries

    def find_loan_by_id(self, loan_id: str) -> Loan:
        require_text(loan_id, "Loan ID")
        loan = self.loans.find_by_id(loan_id)
        if loan is None:
            raise LoanNotFoundError(f"Loan not found with ID: {loan_id}")
        return loan

    def get_loans_by_user(self, user_id: str) -> List[Loan]:
        require_text(user_id, "User ID")
        return self.loans.find_by_user_id(user_id)

    def get_active_loans_by_user(self, user_id: str) -> List[Loan]:
        require_text(user_id, "User ID")
        return self.loans.find_active_by_user_id(user_id)

    def get_loans_by_book(self, isbn: str) -> List[Loan]:
        require_text(isbn, "ISBN")
        return self.loans.find_by_book_isbn(isbn)

    def get_all_active_loans(self) -> List[Loan]:
        return self.loans.find_all_active()

    def get_all_loans(self) -> List[Loan]:
        return self.loans.find_all()

    def get_overdue_loans(self, current_date: Optional[date] = None) -> List[Loan]:
        current_date = require_date(current_date or self.clock(), "Current date")
        return [l for l in self.loans.find_all_active() if l.is_overdue(current_date)]

    def is_loan_overdue(self, loan_id: str) -> bool:
        return self.find_loan_by_id(loan_id).is_overdue(self.clock())

    def generate_loan_report(self) -> LoanReport:
        """Total loans plus per-book counts, highest first; equal counts by ISBN ascending."""
        loans = self.loans.find_all()
        counts = Counter(l.isbn for l in loans)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))

        per_book = []
        for isbn, count in ranked:
            book = self.books.find_by_isbn(isbn)
            if book is None:
                raise BookNotFoundError(f"Loan report references missing book with ISBN: {isbn}")
            per_book.append((book, count))
        return LoanReport(total_loans=len(loans), loans_per_book=per_book)
