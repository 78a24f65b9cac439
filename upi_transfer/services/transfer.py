from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from ..core.config import Settings, get_settings
from ..core.errors import (
    AccountNotActiveError,
    AccountNotFoundError,
    InsufficientBalanceError,
    SameAccountTransferError,
    TransactionLimitExceededError,
    TransferError,
)
from ..core.money import Amount, above, below, positive_amount, to_paise
from ..models import Account, TransactionRecord, TransferResult
from .locking import AccountLocks
from .repository import AccountRepository


logger = logging.getLogger(__name__)


class TransferService:
    """Moves funds between two accounts held by an ``AccountRepository``.

    Checks run in a fixed order: amount validity, per-transaction limits,
    same account, sender exists, receiver exists, both accounts active,
    sender balance. The first three never touch the repository. Everything
    from the first load to the last save runs under both accounts' locks
    inside ``repository.transaction()``, so a failure leaves no trace.

    Accepted amounts are rounded to whole paise once, before any balance
    moves, so both sides change by the same amount whatever the store's
    precision.
    """

    def __init__(
        self,
        repository: Optional[AccountRepository],
        settings: Optional[Settings] = None,
        locks: Optional[AccountLocks] = None,
    ) -> None:
        if repository is None:
            raise ValueError("AccountRepository cannot be None")
        self.repository = repository
        self.settings = settings or get_settings()
        self.locks = locks or AccountLocks()

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _validate_amount(self, amount: Amount) -> Decimal:
        value = positive_amount(amount)

        epsilon = self.settings.amount_epsilon
        if below(value, self.settings.min_amount, epsilon):
            raise TransactionLimitExceededError.below_minimum(value, self.settings.min_amount)
        if above(value, self.settings.max_amount, epsilon):
            raise TransactionLimitExceededError.above_maximum(value, self.settings.max_amount)
        return to_paise(value)

    def _load(self, account_id: str) -> Account:
        account = self.repository.load_account_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _resolve_alias(self, alias: str) -> str:
        account_id = self.repository.find_by_alias(alias)
        if account_id is None:
            raise AccountNotFoundError(alias, upi_lookup=True)
        return account_id

    @staticmethod
    def _check_active(*accounts: Account) -> None:
        for account in accounts:
            if not account.is_transaction_allowed:
                raise AccountNotActiveError(account.id, account.status)

    def _check_balance(self, sender: Account, amount: Decimal) -> None:
        available = sender.balance - self.settings.minimum_balance
        if amount > available:
            raise InsufficientBalanceError(
                sender.id,
                available_balance=available,
                requested_amount=amount,
                balance=sender.balance,
            )

    @staticmethod
    def _new_reference() -> str:
        return "TXN" + uuid4().hex[:12].upper()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transfer(self, sender_id: str, receiver_id: str, amount: Amount) -> TransferResult:
        try:
            value = self._validate_amount(amount)
            if sender_id == receiver_id:
                raise SameAccountTransferError(sender_id)

            with self.locks.hold(sender_id, receiver_id), self.repository.transaction():
                sender = self._load(sender_id)
                receiver = self._load(receiver_id)
                self._check_active(sender, receiver)
                self._check_balance(sender, value)

                sender_before = sender.balance
                receiver_before = receiver.balance
                sender.debit(value)
                receiver.credit(value)

                self.repository.save_account(sender)
                self.repository.save_account(receiver)

                result = TransferResult(
                    reference=self._new_reference(),
                    sender_id=sender_id,
                    receiver_id=receiver_id,
                    amount=value,
                    sender_balance_before=sender_before,
                    sender_balance_after=sender.balance,
                    receiver_balance_before=receiver_before,
                    receiver_balance_after=receiver.balance,
                )
                self.repository.add_transaction(TransactionRecord.from_result(result))
        except TransferError as exc:
            logger.warning(
                "transfer.rejected",
                extra={
                    "sender_id": sender_id,
                    "receiver_id": receiver_id,
                    "amount": str(amount),
                    "error_code": exc.error_code,
                    "error_kind": exc.kind.value,
                },
            )
            raise

        logger.info(
            "transfer.completed",
            extra={
                "reference": result.reference,
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "amount": str(value),
            },
        )
        return result

    def transfer_by_upi_id(self, sender_alias: str, receiver_alias: str, amount: Amount) -> TransferResult:
        try:
            sender_id = self._resolve_alias(sender_alias)
            receiver_id = self._resolve_alias(receiver_alias)
        except AccountNotFoundError as exc:
            logger.warning(
                "transfer.rejected",
                extra={"upi_id": exc.account_id, "error_code": exc.error_code, "error_kind": exc.kind.value},
            )
            raise
        return self.transfer(sender_id, receiver_id, amount)

    def get_balance(self, account_id: str) -> Decimal:
        return self._load(account_id).balance

    def account_exists(self, account_id: str) -> bool:
        return self.repository.exists_by_id(account_id)

    def get_statement(self, account_id: str, limit: int = 50) -> list[TransactionRecord]:
        if not self.repository.exists_by_id(account_id):
            raise AccountNotFoundError(account_id)
        return self.repository.list_transactions(account_id, limit=limit)
