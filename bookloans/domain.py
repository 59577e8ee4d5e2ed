from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, auto
from typing import Any, List, Optional, Tuple

from .errors import (
    AlreadyReturnedError,
    InvalidStateTransitionError,
    InventoryConsistencyError,
    ValidationError,
)


def require_text(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} cannot be empty.")
    return value


def require_date(value: Any, what: str) -> date:
    # datetime is a date subclass; day granularity only
    if not isinstance(value, date):
        raise ValidationError(f"{what} must be a date, got {value!r}.")
    if isinstance(value, datetime):
        return value.date()
    return value


def require_count(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{what} must be an integer, got {value!r}.")
    if value < 0:
        raise ValidationError(f"{what} cannot be negative, got {value}.")
    return value


class BookFormat(Enum):
    PHYSICAL = auto()
    DIGITAL = auto()


@dataclass
class Inventory:
    total_copies: int
    available_copies: int

    @property
    def on_loan(self) -> int:
        return self.total_copies - self.available_copies


@dataclass
class Book:
    title: str
    author: str
    isbn: str
    kind: BookFormat = BookFormat.DIGITAL
    inventory: Optional[Inventory] = None

    def __post_init__(self) -> None:
        self.title = require_text(self.title, "Title").strip()
        self.author = require_text(self.author, "Author").strip()
        require_text(self.isbn, "ISBN")
        if self.kind is BookFormat.PHYSICAL:
            if self.inventory is None:
                raise ValidationError(f"Physical book {self.isbn} needs an inventory.")
            total = require_count(self.inventory.total_copies, "Total copies")
            available = require_count(self.inventory.available_copies, "Available copies")
            if available > total:
                raise InventoryConsistencyError(
                    f"Book {self.isbn}: available copies ({available}) exceed total ({total})."
                )
        elif self.inventory is not None:
            raise ValidationError(f"Digital book {self.isbn} cannot track copies.")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "isbn" and "isbn" in self.__dict__:
            raise InvalidStateTransitionError(f"ISBN of book {self.isbn} is immutable.")
        super().__setattr__(name, value)

    @classmethod
    def physical(cls, title: str, author: str, isbn: str, total_copies: int) -> "Book":
        total = require_count(total_copies, "Total copies")
        return cls(
            title=title,
            author=author,
            isbn=isbn,
            kind=BookFormat.PHYSICAL,
            inventory=Inventory(total_copies=total, available_copies=total),
        )

    @classmethod
    def digital(cls, title: str, author: str, isbn: str) -> "Book":
        return cls(title=title, author=author, isbn=isbn, kind=BookFormat.DIGITAL)

    @property
    def is_physical(self) -> bool:
        return self.kind is BookFormat.PHYSICAL

    def _physical_inventory(self) -> Inventory:
        if self.inventory is None:
            raise InvalidStateTransitionError(f"Book {self.isbn} is not a physical book.")
        return self.inventory

    @property
    def total_copies(self) -> int:
        return self._physical_inventory().total_copies

    @property
    def available_copies(self) -> int:
        return self._physical_inventory().available_copies

    def is_available_for_loan(self) -> bool:
        if self.kind is BookFormat.DIGITAL:
            return True
        return self._physical_inventory().available_copies > 0

    def register_loan(self) -> None:
        if self.kind is BookFormat.DIGITAL:
            return
        inv = self._physical_inventory()
        if inv.available_copies == 0:
            raise InventoryConsistencyError(f"Book {self.isbn} has no copy left to lend.")
        inv.available_copies -= 1

    def register_return(self) -> None:
        if self.kind is BookFormat.DIGITAL:
            return
        inv = self._physical_inventory()
        if inv.available_copies >= inv.total_copies:
            raise InventoryConsistencyError(
                f"Book {self.isbn}: return would exceed {inv.total_copies} total copies."
            )
        inv.available_copies += 1

    def update_details(self, title: str, author: str) -> None:
        title = require_text(title, "Title").strip()
        author = require_text(author, "Author").strip()
        self.title = title
        self.author = author

    def set_total_copies(self, total_copies: int) -> None:
        """Resize the stock, keeping copies already on loan out of the available pool.

        Shrinking below the number of copies currently lent is rejected.
        """
        inv = self._physical_inventory()
        total = require_count(total_copies, "Total copies")
        on_loan = inv.on_loan
        if total < on_loan:
            raise InventoryConsistencyError(
                f"Book {self.isbn}: cannot reduce total copies to {total} "
                f"while {on_loan} are on loan."
            )
        inv.total_copies = total
        inv.available_copies = total - on_loan


@dataclass
class User:
    user_id: str
    name: str
    loan_history: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        require_text(self.user_id, "User ID")
        self.name = require_text(self.name, "User name").strip()

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "user_id" and "user_id" in self.__dict__:
            raise InvalidStateTransitionError(f"ID of user {self.user_id} is immutable.")
        super().__setattr__(name, value)

    def rename(self, name: str) -> None:
        self.name = require_text(name, "User name").strip()

    def record_loan(self, loan_id: str) -> None:
        self.loan_history.append(loan_id)


class LoanStatus(Enum):
    ACTIVE = auto()
    RETURNED = auto()


@dataclass
class Loan:
    loan_id: str
    user_id: str
    isbn: str
    loan_date: date
    due_date: date
    return_date: Optional[date] = field(default=None, init=False)
    returned: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        require_text(self.loan_id, "Loan ID")
        require_text(self.user_id, "User ID")
        require_text(self.isbn, "ISBN")
        self.loan_date = require_date(self.loan_date, "Loan date")
        self.due_date = require_date(self.due_date, "Due date")
        if self.due_date < self.loan_date:
            raise ValidationError(
                f"Loan {self.loan_id}: due date {self.due_date} is before loan date {self.loan_date}."
            )

    @property
    def status(self) -> LoanStatus:
        return LoanStatus.RETURNED if self.returned else LoanStatus.ACTIVE

    def is_overdue(self, on: Optional[date] = None) -> bool:
        on = require_date(on or date.today(), "Current date")
        return not self.returned and on > self.due_date

    def mark_returned(self, when: Optional[date] = None) -> None:
        when = require_date(when or date.today(), "Return date")
        if self.returned:
            raise AlreadyReturnedError(f"Loan {self.loan_id} has already been returned.")
        if when < self.loan_date:
            raise ValidationError(
                f"Loan {self.loan_id}: return date {when} is before loan date {self.loan_date}."
            )
        self.return_date = when
        self.returned = True


@dataclass
class LoanReport:
    total_loans: int
    loans_per_book: List[Tuple[Book, int]] = field(default_factory=list)

    def render(self) -> str:
        lines = [
            "--- Loan Report ---",
            f"Total Loans in System: {self.total_loans}",
            "Loans per Book (Descending):",
        ]
        for book, count in self.loans_per_book:
            lines.append(f"  -> {book.title} (ISBN: {book.isbn}): {count} loans")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()
