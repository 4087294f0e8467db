"""
api/routes/v1/books.py -- Book collection routes.

Routes:
  GET    /books              -- caller's books, newest first (?q= searches title/author)
  POST   /books              -- create a book owned by the caller
  GET    /books/{book_id}    -- one book
  PATCH  /books/{book_id}    -- partial update
  PUT    /books/{book_id}    -- same merge semantics as PATCH
  DELETE /books/{book_id}    -- delete

Ownership: the caller comes from the bearer token, never from the body or the
query string. A book owned by another account answers 404 exactly like a
missing id (see library/service.py).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from api.models import BookCreate, BookPatch, BookResponse
from auth.dependencies import get_current_identity
from auth.models import TokenIdentity
from library.service import BookService

# All book routes require authentication.
router = APIRouter(dependencies=[Depends(get_current_identity)])


def _books(request: Request) -> BookService:
    return request.app.state.book_service


@router.get("/books", response_model=list[BookResponse])
def list_books(
    request: Request,
    q: Optional[str] = Query(default=None, max_length=200),
    caller: TokenIdentity = Depends(get_current_identity),
) -> list[BookResponse]:
    service = _books(request)
    books = service.search_books(caller, q) if q else service.list_books(caller)
    return [BookResponse.from_book(b) for b in books]


@router.post("/books", response_model=BookResponse, status_code=201)
def create_book(
    request: Request,
    body: BookCreate,
    caller: TokenIdentity = Depends(get_current_identity),
) -> BookResponse:
    book = _books(request).create_book(caller, body.model_dump())
    return BookResponse.from_book(book)


@router.get("/books/{book_id}", response_model=BookResponse)
def get_book(
    request: Request,
    book_id: int,
    caller: TokenIdentity = Depends(get_current_identity),
) -> BookResponse:
    return BookResponse.from_book(_books(request).get_book(caller, book_id))


@router.patch("/books/{book_id}", response_model=BookResponse)
@router.put("/books/{book_id}", response_model=BookResponse)
def update_book(
    request: Request,
    book_id: int,
    body: BookPatch,
    caller: TokenIdentity = Depends(get_current_identity),
) -> BookResponse:
    """Apply only the fields present in the body; everything else keeps its value."""
    book = _books(request).update_book(caller, book_id, body.model_dump(exclude_unset=True))
    return BookResponse.from_book(book)


@router.delete("/books/{book_id}", status_code=204)
def delete_book(
    request: Request,
    book_id: int,
    caller: TokenIdentity = Depends(get_current_identity),
) -> Response:
    _books(request).delete_book(caller, book_id)
    return Response(status_code=204)
