import pytest

from bookloans.domain import BookFormat
from bookloans.errors import (
    BookNotFoundError,
    BookOnLoanError,
    ConflictError,
    DuplicateIsbnError,
    InvalidStateTransitionError,
    InventoryConsistencyError,
    ValidationError,
)


def test_register_physical_book(book_service):
    book = book_service.register_physical("O Senhor dos Anéis", "J.R.R. Tolkien", "978-1", 5)
    assert book.kind is BookFormat.PHYSICAL
    assert book.available_copies == book.total_copies == 5
    assert book_service.find_by_isbn("978-1") is book


def test_register_digital_book(book_service):
    book = book_service.register_digital("Duna", "Frank Herbert", "123-456")
    assert book.kind is BookFormat.DIGITAL
    assert book.is_available_for_loan()


def test_duplicate_isbn_is_rejected_across_formats(book_service):
    book_service.register_physical("O Senhor dos Anéis", "J.R.R. Tolkien", "978-1", 5)
    with pytest.raises(DuplicateIsbnError, match="978-1"):
        book_service.register_physical("Outro Livro", "Outro Autor", "978-1", 1)
    with pytest.raises(ConflictError):
        book_service.register_digital("Outro Livro", "Outro Autor", "978-1")
    book = book_service.find_by_isbn("978-1")
    assert book.title == "O Senhor dos Anéis"
    assert len(book_service.list_all()) == 1


def test_register_rejects_negative_copies(book_service):
    with pytest.raises(ValidationError):
        book_service.register_physical("T", "A", "978-1", -1)
    assert book_service.list_all() == []


def test_find_missing_book(book_service):
    with pytest.raises(BookNotFoundError, match="999"):
        book_service.find_by_isbn("999")


def test_update_digital(book_service):
    book_service.register_digital("Duna", "Frank Herbert", "123-456")
    book = book_service.update_digital("123-456", "Duna (Ed. Especial)", "Frank Herbert")
    assert book_service.find_by_isbn("123-456").title == "Duna (Ed. Especial)"
    assert book.title == "Duna (Ed. Especial)"


def test_update_physical_changes_details_and_stock(book_service):
    book_service.register_physical("T", "A", "978-1", 2)
    book = book_service.update_physical("978-1", "New", "Author", 4)
    assert (book.title, book.total_copies, book.available_copies) == ("New", 4, 4)


def test_update_with_wrong_format_is_rejected(book_service):
    book_service.register_digital("Duna", "Frank Herbert", "123-456")
    book_service.register_physical("T", "A", "978-1", 1)
    with pytest.raises(InvalidStateTransitionError, match="not a physical book"):
        book_service.update_physical("123-456", "X", "Y", 3)
    with pytest.raises(InvalidStateTransitionError, match="not a digital book"):
        book_service.update_digital("978-1", "X", "Y")
    assert book_service.find_by_isbn("123-456").title == "Duna"


def test_update_physical_is_all_or_nothing(book_service):
    book = book_service.register_physical("T", "A", "978-1", 2)
    book.register_loan()
    book.register_loan()
    with pytest.raises(InventoryConsistencyError):
        book_service.update_physical("978-1", "New", "Author", 1)
    assert (book.title, book.total_copies) == ("T", 2)
    with pytest.raises(ValidationError):
        book_service.update_physical("978-1", "", "Author", 5)
    assert book.total_copies == 2


def test_update_details_and_set_total_copies(book_service):
    book_service.register_physical("T", "A", "978-1", 1)
    book_service.update_details("978-1", "Title", "Author")
    book = book_service.set_total_copies("978-1", 3)
    assert (book.title, book.author, book.total_copies, book.available_copies) == ("Title", "Author", 3, 3)


def test_search_matches_title_author_and_isbn(book_service):
    book_service.register_physical("Clean Code", "Robert C. Martin", "978-0132350884", 1)
    book_service.register_digital("Dune", "Frank Herbert", "123-456")
    assert [b.isbn for b in book_service.search("clean")] == ["978-0132350884"]
    assert [b.title for b in book_service.search("HERBERT")] == ["Dune"]
    assert [b.title for b in book_service.search("123")] == ["Dune"]
    assert book_service.search("tolkien") == []


def test_delete(book_service):
    book_service.register_digital("Duna", "Frank Herbert", "123-456")
    book_service.delete("123-456")
    assert book_service.list_all() == []
    with pytest.raises(BookNotFoundError):
        book_service.delete("123-456")


def test_delete_validates_isbn(book_service):
    with pytest.raises(ValidationError):
        book_service.delete("")


@pytest.mark.parametrize("returned", [False, True])
def test_delete_is_refused_while_loans_reference_the_book(
    book_service, loan_service, stocked, returned
):
    loan = loan_service.create_loan("12345", "978-0132350884")
    if returned:
        loan_service.return_loan(loan.loan_id)

    with pytest.raises(BookOnLoanError, match="978-0132350884") as exc:
        book_service.delete("978-0132350884")
    assert isinstance(exc.value, ConflictError)

    assert book_service.find_by_isbn("978-0132350884").title == "Clean Code"
    report = loan_service.generate_loan_report()
    assert report.total_loans == 1
    assert report.loans_per_book[0][0].isbn == "978-0132350884"
    if not returned:
        loan_service.return_loan(loan.loan_id)
    assert book_service.find_by_isbn("978-0132350884").available_copies == 2


def test_delete_unreferenced_book_alongside_loans(book_service, loan_service, stocked):
    loan_service.create_loan("12345", "978-0132350884")
    book_service.delete("123-456")
    assert [b.isbn for b in book_service.list_all()] == ["978-0132350884"]
