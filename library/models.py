"""
library/models.py -- Domain dataclasses for the book collection.

Pure data containers with zero logic. Ownership rules live in
library/service.py; SQL lives in library/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Book:
    """One entry in an account's private library.

    owner_id is always the id of the account that created the book. It is set
    by the service from the caller's token, never from request input, and is
    never changed afterwards.

    id is None before the record is written to the database.
    """

    owner_id: int
    title: str
    author: str
    year: int
    rating: int
    review: Optional[str] = None
    cover_image_url: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on insert and update
