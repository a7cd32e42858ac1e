from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Book:
    """Represents a single book item in the library."""

    title: str
    author: str
    isbn: str

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def to_dict(self) -> dict:
        return {"title": self.title, "author": self.author, "isbn": self.isbn}

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            title=data.get("title", ""),
            author=data.get("author", ""),
            isbn=data.get("isbn", ""),
        )


class BookBuilder:
    """Fluent constructor for Book values.

    Unset fields default to an empty string; build() performs no completeness check.
    """

    def __init__(self) -> None:
        self._title = ""
        self._author = ""
        self._isbn = ""

    def with_title(self, title: str) -> "BookBuilder":
        self._title = title
        return self

    def with_author(self, author: str) -> "BookBuilder":
        self._author = author
        return self

    def with_isbn(self, isbn: str) -> "BookBuilder":
        self._isbn = isbn
        return self

    def build(self) -> Book:
        return Book(title=self._title, author=self._author, isbn=self._isbn)
