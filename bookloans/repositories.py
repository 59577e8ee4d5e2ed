from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import threading

from .domain import Book, Loan, User


# ---- contracts


class BookRepository(ABC):
    @abstractmethod
    def save(self, book: Book) -> Book: ...

    @abstractmethod
    def find_by_isbn(self, isbn: str) -> Optional[Book]: ...

    @abstractmethod
    def find_all(self) -> List[Book]: ...

    @abstractmethod
    def exists_by_isbn(self, isbn: str) -> bool: ...

    @abstractmethod
    def delete_by_isbn(self, isbn: str) -> bool: ...


class UserRepository(ABC):
    @abstractmethod
    def save(self, user: User) -> User: ...

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def find_all(self) -> List[User]: ...

    @abstractmethod
    def exists_by_id(self, user_id: str) -> bool: ...

    @abstractmethod
    def delete_by_id(self, user_id: str) -> bool: ...


class LoanRepository(ABC):
    @abstractmethod
    def save(self, loan: Loan) -> Loan: ...

    @abstractmethod
    def find_by_id(self, loan_id: str) -> Optional[Loan]: ...

    @abstractmethod
    def find_all(self) -> List[Loan]: ...

    @abstractmethod
    def find_by_user_id(self, user_id: str) -> List[Loan]: ...

    @abstractmethod
    def find_by_book_isbn(self, isbn: str) -> List[Loan]: ...

    @abstractmethod
    def find_active_by_user_id(self, user_id: str) -> List[Loan]: ...

    @abstractmethod
    def find_all_active(self) -> List[Loan]: ...

    @abstractmethod
    def exists_by_id(self, loan_id: str) -> bool: ...

    @abstractmethod
    def delete_by_id(self, loan_id: str) -> bool: ...


# ---- in-memory backends (insertion ordered, one lock per repository)


class UserRepo(UserRepository):
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.RLock()

    def save(self, user: User) -> User:
        with self._lock:
            self._users[user.user_id] = user
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def find_all(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def exists_by_id(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._users

    def delete_by_id(self, user_id: str) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None


class BookRepo(BookRepository):
    def __init__(self) -> None:
        self._books: Dict[str, Book] = {}
        self._lock = threading.RLock()

    def save(self, book: Book) -> Book:
        with self._lock:
            self._books[book.isbn] = book
        return book

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        with self._lock:
            return self._books.get(isbn)

    def find_all(self) -> List[Book]:
        with self._lock:
            return list(self._books.values())

    def exists_by_isbn(self, isbn: str) -> bool:
        with self._lock:
            return isbn in self._books

    def delete_by_isbn(self, isbn: str) -> bool:
        with self._lock:
            return self._books.pop(isbn, None) is not None


class LoanRepo(LoanRepository):
    def __init__(self) -> None:
        self._loans: Dict[str, Loan] = {}
        self._lock = threading.RLock()

    def save(self, loan: Loan) -> Loan:
        with self._lock:
            self._loans[loan.loan_id] = loan
        return loan

    def find_by_id(self, loan_id: str) -> Optional[Loan]:
        with self._lock:
            return self._loans.get(loan_id)

    def find_all(self) -> List[Loan]:
        with self._lock:
            return list(self._loans.values())

    def find_by_user_id(self, user_id: str) -> List[Loan]:
        with self._lock:
            return [l for l in self._loans.values() if l.user_id == user_id]

    def find_by_book_isbn(self, isbn: str) -> List[Loan]:
        with self._lock:
            return [l for l in self._loans.values() if l.isbn == isbn]

    def find_active_by_user_id(self, user_id: str) -> List[Loan]:
        with self._lock:
            return [
                l
                for l in self._loans.values()
                if l.user_id == user_id and not l.returned
            ]

    def find_all_active(self) -> List[Loan]:
        with self._lock:
            return [l for l in self._loans.values() if not l.returned]

    def exists_by_id(self, loan_id: str) -> bool:
        with self._lock:
            return loan_id in self._loans

    def delete_by_id(self, loan_id: str) -> bool:
        with self._lock:
            return self._loans.pop(loan_id, None) is not None
