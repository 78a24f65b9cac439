from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlmodel import Session, select

from ..core.money import from_minor_units, to_minor_units
from ..models import (
    Account,
    AccountModel,
    AccountStatus,
    AliasModel,
    TransactionEntryModel,
    TransactionRecord,
    TransactionStatus,
)


logger = logging.getLogger(__name__)


class AccountRepository(ABC):
    """Storage port used by the transfer service.

    Lookups return ``None`` for missing accounts; translating absence into a
    domain error is the service's job.
    """

    @abstractmethod
    def load_account_by_id(self, account_id: str) -> Optional[Account]:
        """Return a detached copy of the account, or ``None``."""

    @abstractmethod
    def save_account(self, account: Account) -> None:
        """Overwrite the stored state for ``account.id``."""

    @abstractmethod
    def find_by_alias(self, alias: str) -> Optional[str]:
        """Resolve a UPI id to an account id, ignoring case."""

    @abstractmethod
    def exists_by_id(self, account_id: str) -> bool: ...

    @abstractmethod
    def get_total_balance(self) -> Decimal: ...

    @abstractmethod
    def add_transaction(self, record: TransactionRecord) -> None: ...

    @abstractmethod
    def list_transactions(self, account_id: str, limit: int = 50) -> list[TransactionRecord]:
        """Records where the account is sender or receiver, newest first."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Unit of work around load, mutate and save.

        Writes made inside the block are rolled back if it raises. The base
        implementation has nothing to undo.
        """
        yield


class InMemoryAccountRepository(AccountRepository):
    """Volatile repository backed by dictionaries.

    Accounts are copied on the way in and out, so callers never hold a
    reference to stored state.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._aliases: dict[str, str] = {}
        self._transactions: list[TransactionRecord] = []
        self._lock = threading.RLock()
        self._journal = threading.local()

    # Fixture helpers ----------------------------------------------------
    def add_account(self, account: Account) -> "InMemoryAccountRepository":
        with self._lock:
            self._accounts[account.id] = account.model_copy()
        return self

    def add_accounts(self, *accounts: Account) -> "InMemoryAccountRepository":
        for account in accounts:
            self.add_account(account)
        return self

    def add_alias(self, alias: str, account_id: str) -> "InMemoryAccountRepository":
        with self._lock:
            self._aliases[alias.lower()] = account_id
        return self

    def clear(self) -> None:
        with self._lock:
            self._accounts.clear()
            self._aliases.clear()
            self._transactions.clear()

    @property
    def account_count(self) -> int:
        return len(self._accounts)

    @property
    def alias_count(self) -> int:
        return len(self._aliases)

    def is_empty(self) -> bool:
        return not self._accounts

    # Account operations -------------------------------------------------
    def load_account_by_id(self, account_id: str) -> Optional[Account]:
        with self._lock:
            account = self._accounts.get(account_id)
            return account.model_copy() if account is not None else None

    def save_account(self, account: Account) -> None:
        with self._lock:
            journal = self._active_journal()
            if journal is not None and account.id not in journal["accounts"]:
                journal["accounts"][account.id] = self._accounts.get(account.id)
            self._accounts[account.id] = account.model_copy()
        logger.debug("account.saved", extra={"account_id": account.id})

    def find_by_alias(self, alias: str) -> Optional[str]:
        with self._lock:
            return self._aliases.get(alias.lower())

    def exists_by_id(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._accounts

    def get_total_balance(self) -> Decimal:
        with self._lock:
            return sum((account.balance for account in self._accounts.values()), Decimal("0"))

    # Transaction log ----------------------------------------------------
    def add_transaction(self, record: TransactionRecord) -> None:
        with self._lock:
            journal = self._active_journal()
            if journal is not None:
                journal["records"].append(record)
            self._transactions.append(record)

    def list_transactions(self, account_id: str, limit: int = 50) -> list[TransactionRecord]:
        with self._lock:
            matching = [record for record in reversed(self._transactions) if record.involves(account_id)]
        return matching[:limit]

    # Unit of work -------------------------------------------------------
    def _active_journal(self) -> Optional[dict]:
        return getattr(self._journal, "current", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._active_journal() is not None:
            # nested blocks join the outer unit of work
            yield
            return

        self._journal.current = {"accounts": {}, "records": []}
        try:
            yield
        except BaseException:
            journal = self._journal.current
            if journal["accounts"] or journal["records"]:
                self._rollback(journal)
            raise
        finally:
            self._journal.current = None

    def _rollback(self, journal: dict) -> None:
        with self._lock:
            for account_id, previous in journal["accounts"].items():
                if previous is None:
                    self._accounts.pop(account_id, None)
                else:
                    self._accounts[account_id] = previous
            for record in journal["records"]:
                self._transactions.remove(record)
        logger.warning(
            "transaction.rolled_back",
            extra={"account_ids": sorted(journal["accounts"])},
        )

    def __repr__(self) -> str:
        with self._lock:
            lines = [f"  {account}" for account in self._accounts.values()]
        return "InMemoryAccountRepository [\n" + "\n".join(lines) + "\n]"


class SqlAccountRepository(AccountRepository):
    """Thin data access layer around the SQLModel session.

    Balances are stored in paise; ``save_account`` only flushes, the
    enclosing ``transaction()`` decides whether the work is committed.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Fixture helpers ----------------------------------------------------
    def add_account(self, account: Account) -> "SqlAccountRepository":
        self.save_account(account)
        self.session.commit()
        return self

    def add_alias(self, alias: str, account_id: str) -> "SqlAccountRepository":
        self.session.merge(AliasModel(alias=alias.lower(), account_id=account_id))
        self.session.commit()
        return self

    # Account operations -------------------------------------------------
    def load_account_by_id(self, account_id: str) -> Optional[Account]:
        row = self.session.get(AccountModel, account_id)
        if row is None:
            return None
        return Account(
            id=row.id,
            holder_name=row.holder_name,
            balance=from_minor_units(row.balance_minor),
            status=AccountStatus(row.status),
        )

    def save_account(self, account: Account) -> None:
        row = self.session.get(AccountModel, account.id)
        if row is None:
            row = AccountModel(id=account.id, holder_name=account.holder_name)
        row.holder_name = account.holder_name
        row.balance_minor = to_minor_units(account.balance)
        row.status = account.status.value
        self.session.add(row)
        self.session.flush()
        logger.debug("account.saved", extra={"account_id": account.id})

    def find_by_alias(self, alias: str) -> Optional[str]:
        row = self.session.get(AliasModel, alias.lower())
        return row.account_id if row is not None else None

    def exists_by_id(self, account_id: str) -> bool:
        return self.session.get(AccountModel, account_id) is not None

    def get_total_balance(self) -> Decimal:
        total = self.session.exec(select(func.sum(AccountModel.balance_minor))).one()
        return from_minor_units(total or 0)

    # Transaction log ----------------------------------------------------
    def add_transaction(self, record: TransactionRecord) -> None:
        entry = TransactionEntryModel(
            reference=record.reference,
            ts=record.timestamp,
            sender_id=record.sender_id,
            receiver_id=record.receiver_id,
            amount_minor=to_minor_units(record.amount),
            sender_before_minor=to_minor_units(record.sender_balance_before),
            sender_after_minor=to_minor_units(record.sender_balance_after),
            receiver_before_minor=to_minor_units(record.receiver_balance_before),
            receiver_after_minor=to_minor_units(record.receiver_balance_after),
            status=record.status.value,
        )
        self.session.add(entry)
        self.session.flush()

    def list_transactions(self, account_id: str, limit: int = 50) -> list[TransactionRecord]:
        stmt = (
            select(TransactionEntryModel)
            .where(
                or_(
                    TransactionEntryModel.sender_id == account_id,
                    TransactionEntryModel.receiver_id == account_id,
                )
            )
            .order_by(TransactionEntryModel.seq.desc())
            .limit(limit)
        )
        return [
            TransactionRecord(
                reference=entry.reference,
                timestamp=entry.ts,
                sender_id=entry.sender_id,
                receiver_id=entry.receiver_id,
                amount=from_minor_units(entry.amount_minor),
                sender_balance_before=from_minor_units(entry.sender_before_minor),
                sender_balance_after=from_minor_units(entry.sender_after_minor),
                receiver_balance_before=from_minor_units(entry.receiver_before_minor),
                receiver_balance_after=from_minor_units(entry.receiver_after_minor),
                status=TransactionStatus(entry.status),
            )
            for entry in self.session.exec(stmt)
        ]

    # Unit of work -------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
        except BaseException:
            self.session.rollback()
            logger.debug("transaction.rolled_back")
            raise
        else:
            self.session.commit()
