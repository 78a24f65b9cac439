from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.errors import InsufficientBalanceError
from ..core.money import Amount, positive_amount, to_decimal


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    CLOSED = "CLOSED"
    BLOCKED = "BLOCKED"


class Account(BaseModel):
    """One holder's balance.

    Assignments are validated, so a balance can never be set below zero.
    Only ``ACTIVE`` accounts may send or receive funds.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1)
    holder_name: str
    balance: Decimal = Field(default=Decimal("0"), ge=0, description="Balance in rupees")
    status: AccountStatus = AccountStatus.ACTIVE

    @field_validator("balance", mode="before")
    @classmethod
    def coerce_balance(cls, value: Amount) -> Decimal:
        try:
            return to_decimal(value)
        except InvalidOperation:
            raise ValueError(f"balance is not a number: {value!r}") from None

    @property
    def is_transaction_allowed(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    def credit(self, amount: Amount) -> None:
        value = positive_amount(amount)
        self.balance = self.balance + value

    def debit(self, amount: Amount) -> None:
        value = positive_amount(amount)
        if value > self.balance:
            raise InsufficientBalanceError(self.id, self.balance, value)
        self.balance = self.balance - value

    def __str__(self) -> str:
        return f"{self.id}: {self.holder_name} (₹{self.balance:.2f})"


class TransferResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference: str
    sender_id: str
    receiver_id: str
    amount: Decimal
    sender_balance_before: Decimal
    sender_balance_after: Decimal
    receiver_balance_before: Decimal
    receiver_balance_after: Decimal

    def __str__(self) -> str:
        return (
            f"Transfer: {self.sender_id} → {self.receiver_id}, Amount: ₹{self.amount:.2f}, "
            f"Sender: ₹{self.sender_balance_before:.2f} → ₹{self.sender_balance_after:.2f}, "
            f"Receiver: ₹{self.receiver_balance_before:.2f} → ₹{self.receiver_balance_after:.2f}"
        )


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"


class TransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sender_id: str
    receiver_id: str
    amount: Decimal
    sender_balance_before: Decimal
    sender_balance_after: Decimal
    receiver_balance_before: Decimal
    receiver_balance_after: Decimal
    status: TransactionStatus = TransactionStatus.COMPLETED

    @classmethod
    def from_result(cls, result: TransferResult) -> "TransactionRecord":
        return cls(**result.model_dump())

    def involves(self, account_id: str) -> bool:
        return account_id in (self.sender_id, self.receiver_id)
