"""
library/service.py -- Owner-scoped book operations.

Every method takes the caller's TokenIdentity and never an owner id from the
request:

  - list/search filter by caller.subject_id in SQL.
  - get/update/delete fetch by id, then require_owner(). A book owned by
    another account raises the same NotFound as a missing id.
  - create stamps owner_id from the caller.
  - update merges: only fields the client sent are written.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from auth.guard import apply_patch, require_owner
from auth.models import TokenIdentity
from library.models import Book
from library.store import BookStore

logger = logging.getLogger("digitallibrary.library")

BOOK_FIELDS = ("title", "author", "year", "rating", "review", "cover_image_url")
_REQUIRED_FIELDS = ("title", "author", "year", "rating")


class BookService:
    def __init__(self, books: BookStore) -> None:
        self.books = books

    def list_books(self, caller: TokenIdentity) -> list[Book]:
        return self.books.list_by_owner(caller.subject_id)

    def search_books(self, caller: TokenIdentity, term: str) -> list[Book]:
        return self.books.search(caller.subject_id, term)

    def get_book(self, caller: TokenIdentity, book_id: int) -> Book:
        """Return the caller's book, or raise NotFound."""
        book = self.books.get_book(book_id)
        require_owner(book.owner_id if book else None, caller, "Book")
        return book

    def create_book(self, caller: TokenIdentity, data: Mapping[str, Any]) -> Book:
        """Create a book owned by the caller.

        data may contain anything the client sent; only BOOK_FIELDS are read,
        so an owner_id in the payload is ignored.
        """
        fields = {k: data[k] for k in BOOK_FIELDS if k in data}
        book_id = self.books.create_book(Book(owner_id=caller.subject_id, **fields))
        logger.info("Account %d created book %d", caller.subject_id, book_id)
        return self.books.get_book(book_id)

    def update_book(self, caller: TokenIdentity, book_id: int, changes: Mapping[str, Any]) -> Book:
        """Apply a partial update to the caller's book and return the result."""
        self.get_book(caller, book_id)
        updates = apply_patch(changes, allowed=BOOK_FIELDS, required=_REQUIRED_FIELDS)
        if updates:
            self.books.update_book(book_id, **updates)
        return self.books.get_book(book_id)

    def delete_book(self, caller: TokenIdentity, book_id: int) -> None:
        self.get_book(caller, book_id)
        self.books.delete_book(book_id)
        logger.info("Account %d deleted book %d", caller.subject_id, book_id)
