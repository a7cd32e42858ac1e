import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any

from book import Book
from config import settings
from notifications import NotificationService, ExternalServiceError
from observers import BookObserver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loan:
    """A user holding a book, from loan_book() until return_book()."""

    isbn: str
    user_id: str
    loaned_at: datetime
    due_date: datetime
    returned_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.returned_at is None

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return self.is_active and now > self.due_date

    def closed(self, when: Optional[datetime] = None) -> "Loan":
        return replace(self, returned_at=when or datetime.now())


class Library:
    """Manages the in-memory collection of books and their loans."""

    def __init__(self, notifier: NotificationService, loan_days: Optional[int] = None) -> None:
        self.notifier = notifier
        self.loan_days = int(loan_days if loan_days is not None else settings.loan_days)
        self._books: List[Book] = []
        self._loans: List[Loan] = []
        self._observers: List[BookObserver] = []
        self._lock = threading.RLock()

    # ------------------------- Observers ------------------------- #
    def subscribe(self, observer: BookObserver) -> None:
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: BookObserver) -> bool:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)
                return True
            return False

    # ------------------------- Core operations ------------------------- #
    def add_book(self, book: Book) -> None:
        """Add a pre-constructed Book. Prevent duplicates by ISBN."""
        with self._lock:
            if self._find(book.isbn):
                raise ValueError(f"Book with ISBN {book.isbn} already exists.")
            self._books.append(book)
            observers = list(self._observers)
        logger.info(f"Book added: {book}")

        message = f"New book available: '{book.title}' by {book.author}"
        for observer in observers:
            try:
                observer.update(message)
            except ExternalServiceError as e:
                logger.error(f"Observer {observer!r} could not be notified: {e}")
            except Exception:
                logger.exception(f"Observer {observer!r} failed while handling: {message}")

    def remove_book(self, isbn: str) -> bool:
        with self._lock:
            remaining = [b for b in self._books if b.isbn != isbn]
            if len(remaining) == len(self._books):
                logger.warning(f"Cannot remove book, ISBN {isbn} not found")
                return False
            self._books = remaining
            self._loans = [loan.closed() if loan.isbn == isbn and loan.is_active else loan for loan in self._loans]
        logger.info(f"Book with ISBN {isbn} removed")
        return True

    def list_books(self) -> List[Book]:
        with self._lock:
            return list(self._books)

    def find_book(self, isbn: str) -> Optional[Book]:
        with self._lock:
            return self._find(isbn)

    # ------------------------- Loans ------------------------- #
    def loan_book(self, isbn: str, user_id: str) -> Optional[Loan]:
        """Lend a book to a user. Returns the new Loan, or None if the book is missing or already on loan."""
        with self._lock:
            book = self._find(isbn)
            if not book:
                logger.warning(f"Loan requested for unknown ISBN {isbn}")
                return None
            if self._active_loan(isbn):
                logger.warning(f"Book with ISBN {isbn} is already on loan")
                return None
            now = datetime.now()
            loan = Loan(isbn=isbn, user_id=user_id, loaned_at=now, due_date=now + timedelta(days=self.loan_days))
            self._loans.append(loan)
        logger.info(f"Book with ISBN {isbn} loaned to {user_id}")
        self._send(user_id, f"You have requested the book '{book.title}'.")
        return loan

    def return_book(self, isbn: str, user_id: str) -> Optional[Loan]:
        """Close the user's active loan. Returns the closed Loan, or None if there is nothing to return."""
        with self._lock:
            book = self._find(isbn)
            if not book:
                logger.warning(f"Return requested for unknown ISBN {isbn}")
                return None
            loan = self._active_loan(isbn)
            if not loan or loan.user_id != user_id:
                logger.warning(f"No active loan of ISBN {isbn} for {user_id}")
                return None
            loan = self._close(loan)
        logger.info(f"Book with ISBN {isbn} returned by {user_id}")
        self._send(user_id, f"You have returned the book '{book.title}'. Thanks!")
        return loan

    def active_loans(self) -> List[Loan]:
        with self._lock:
            return [loan for loan in self._loans if loan.is_active]

    def loans_for_user(self, user_id: str) -> List[Loan]:
        with self._lock:
            return [loan for loan in self._loans if loan.user_id == user_id]

    def overdue_loans(self, now: Optional[datetime] = None) -> List[Loan]:
        now = now or datetime.now()
        with self._lock:
            return [loan for loan in self._loans if loan.is_overdue(now)]

    def get_statistics(self) -> Dict[str, Any]:
        """Get library statistics."""
        with self._lock:
            return {
                "total_books": len(self._books),
                "unique_authors": len({b.author for b in self._books}),
                "active_loans": sum(1 for loan in self._loans if loan.is_active),
            }

    # ------------------------- Helpers ------------------------- #
    def _find(self, isbn: str) -> Optional[Book]:
        return next((b for b in self._books if b.isbn == isbn), None)

    def _active_loan(self, isbn: str) -> Optional[Loan]:
        return next((loan for loan in self._loans if loan.isbn == isbn and loan.is_active), None)

    def _close(self, loan: Loan, when: Optional[datetime] = None) -> Loan:
        closed = loan.closed(when)
        self._loans[self._loans.index(loan)] = closed
        return closed

    def _send(self, user_id: str, message: str) -> None:
        # Delivery is fire-and-forget; the loan state is already recorded.
        try:
            self.notifier.send(user_id, message)
        except ExternalServiceError as e:
            logger.error(f"Could not notify {user_id}: {e}")


class LibraryManager:
    """Holds the single process-wide Library instance."""

    _instance: Optional[Library] = None
    _lock = threading.Lock()

    @classmethod
    def initialize(cls, notifier: NotificationService, loan_days: Optional[int] = None) -> Library:
        """Create the shared Library exactly once with its notification dependency."""
        with cls._lock:
            if cls._instance is not None:
                raise RuntimeError("Library is already initialized.")
            cls._instance = Library(notifier, loan_days=loan_days)
            logger.info(f"Library initialized with {type(notifier).__name__}")
            return cls._instance

    @classmethod
    def get_instance(cls) -> Library:
        if cls._instance is None:
            raise RuntimeError("Library is not initialized. Call LibraryManager.initialize() first.")
        return cls._instance

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = None
