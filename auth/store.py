"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as library/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is enforced twice: services call exists_by_email() /
  find_by_email() before create and update so they can answer with a clean
  DuplicateEmail, and the UNIQUE constraint catches the race where two
  concurrent registrations both pass that check.

Emails are normalized (stripped, lower-cased) on every write and lookup.

Ids are never reused (sqlite_autoincrement), so a token minted for a deleted
account cannot come to speak for a later one.

Layer rule: no imports from api/ or library/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import Account

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

# Columns update_account() may write. Anything else is rejected.
_MUTABLE_FIELDS = frozenset({"first_name", "last_name", "email", "hashed_password"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def make_engine(db_url: str) -> Engine:
    """Create an engine with the SQLite settings every store in this repo uses."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///:memory:")
        account_id = store.create_account(Account(first_name="Ada", last_name="L",
                                                  email="ada@x.com", hashed_password=hash_password("secret")))
        account = store.find_by_email("ada@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == normalize_email(email))).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def exists_by_email(self, email: str) -> bool:
        with self.engine.connect() as conn:
            found = conn.execute(
                select(_accounts.c.id).where(_accounts.c.email == normalize_email(email)).limit(1)
            ).first()
        return found is not None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers should treat that as a signal that a concurrent request
        registered the same email first.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    first_name=account.first_name,
                    last_name=account.last_name,
                    email=normalize_email(account.email),
                    hashed_password=account.hashed_password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_account(self, account_id: int, **fields) -> bool:
        """Update mutable fields on an existing account.

        Accepted fields: first_name, last_name, email, hashed_password.
        Unknown keys raise ValueError rather than being silently ignored.

        Returns True if a row was updated, False if account_id was not found.
        Raises sqlalchemy.exc.IntegrityError if the new email is taken.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {unknown!r}")
        if not fields:
            return self.find_by_id(account_id) is not None
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_account(self, account_id: int) -> bool:
        """Permanently delete an account. Returns True if deleted, False if not found.

        Owned books live in library/store.py; the account service removes them
        right after this succeeds.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.delete().where(_accounts.c.id == account_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
