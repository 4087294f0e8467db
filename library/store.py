"""
library/store.py -- SQLAlchemy-backed persistence layer for books.

Uses SQLAlchemy Core (not ORM) so the dataclass in library/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. BookStore is the repository; _row_to_book
is the mapper. Services never touch SQL directly.

Every collection query takes owner_id and filters on it in SQL. There is no
"list all books" method: nothing in the app needs one, and its absence means
no caller can accidentally list another account's books.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = BookStore("sqlite:///:memory:")
    book_id = store.create_book(Book(owner_id=1, title="Dune", author="Herbert", year=1965, rating=5))
    store.list_by_owner(1)
    store.update_book(book_id, rating=4)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, func, or_

from auth.store import make_engine
from library.models import Book

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_books = Table(
    "books",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False),
    Column("title", String(200), nullable=False),
    Column("author", String(200), nullable=False),
    Column("year", Integer, nullable=False),
    Column("rating", Integer, nullable=False),
    Column("review", Text),
    Column("cover_image_url", String(500)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_books_owner_id", "owner_id"),
    sqlite_autoincrement=True,
)

# owner_id and timestamps are deliberately absent: ownership never changes
# after insert and timestamps are managed here.
_MUTABLE_FIELDS = frozenset({"title", "author", "year", "rating", "review", "cover_image_url"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BookStore:
    def __init__(self, db_url: str) -> None:
        self.engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_by_owner(self, owner_id: int) -> list[Book]:
        """Return every book owned by owner_id, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _books.select().where(_books.c.owner_id == owner_id).order_by(_books.c.id.desc())
            ).fetchall()
        return [_row_to_book(r) for r in rows]

    def search(self, owner_id: int, term: str) -> list[Book]:
        """Case-insensitive substring match on title or author within one owner's books.

        A blank term behaves like list_by_owner().
        """
        query = _books.select().where(_books.c.owner_id == owner_id)
        term = term.strip().lower()
        if term:
            # Escape LIKE wildcards so a user-typed "%" or "_" matches literally.
            escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{escaped}%"
            query = query.where(
                or_(
                    func.lower(_books.c.title).like(pattern, escape="\\"),
                    func.lower(_books.c.author).like(pattern, escape="\\"),
                )
            )
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_books.c.id.desc())).fetchall()
        return [_row_to_book(r) for r in rows]

    def get_book(self, book_id: int) -> Optional[Book]:
        """Fetch a single book by ID regardless of owner. Returns None if not found.

        Callers must check owner_id before exposing the result.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
        return _row_to_book(row) if row is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_book(self, book: Book) -> int:
        """Insert a new book and return its assigned database ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _books.insert().values(
                    owner_id=book.owner_id,
                    title=book.title,
                    author=book.author,
                    year=book.year,
                    rating=book.rating,
                    review=book.review,
                    cover_image_url=book.cover_image_url,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_book(self, book_id: int, **fields) -> bool:
        """Update a subset of mutable fields. Fields not passed keep their values.

        Accepts any subset of: title, author, year, rating, review,
        cover_image_url. Unknown keys (including owner_id) raise ValueError.

        Returns True if a row was updated, False if book_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown book fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _books.update().where(_books.c.id == book_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_book(self, book_id: int) -> bool:
        """Delete one book. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_books.delete().where(_books.c.id == book_id))
            conn.commit()
        return result.rowcount > 0

    def delete_by_owner(self, owner_id: int) -> int:
        """Delete every book owned by owner_id and return how many were removed.

        Called when the owning account is deleted.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_books.delete().where(_books.c.owner_id == owner_id))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_book(row) -> Book:
    return Book(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        author=row.author,
        year=row.year,
        rating=row.rating,
        review=row.review,
        cover_image_url=row.cover_image_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
