from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Optional

if TYPE_CHECKING:
    from ..models.schemas import AccountStatus


class ErrorKind(str, Enum):
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_NOT_ACTIVE = "account_not_active"
    INVALID_AMOUNT = "invalid_amount"
    LIMIT_EXCEEDED = "limit_exceeded"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SAME_ACCOUNT = "same_account"


class AmountValidationType(str, Enum):
    NEGATIVE = "Amount cannot be negative"
    ZERO = "Amount cannot be zero"
    NOT_A_NUMBER = "Amount must be a finite number"


class LimitType(str, Enum):
    PER_TRANSACTION_MIN = "Minimum per transaction"
    PER_TRANSACTION_MAX = "Maximum per transaction"


class TransferError(Exception):
    """Base class for every failure the transfer service reports.

    Each subclass sets ``kind`` so callers can dispatch with ``match``
    instead of chaining ``except`` clauses, and ``error_code`` with the
    NPCI response code shown to the payer.
    """

    kind: ClassVar[ErrorKind]
    error_code: ClassVar[str] = "U00"

    def __init__(self, message: str, transaction_ref: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.transaction_ref = transaction_ref
        self.timestamp = datetime.now(UTC)

    def formatted_error(self) -> str:
        return (
            f"[{self.error_code}] {self.message} | "
            f"Time: {self.timestamp.isoformat()} | Ref: {self.transaction_ref or 'N/A'}"
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code!r}, "
            f"message={self.message!r})"
        )


class AccountNotFoundError(TransferError):
    """Raised when an account id or UPI id does not resolve."""

    kind = ErrorKind.ACCOUNT_NOT_FOUND
    error_code = "U30"

    def __init__(self, account_id: str, upi_lookup: bool = False) -> None:
        label = "UPI ID" if upi_lookup else "Account"
        super().__init__(f"{label} not found: {account_id}")
        self.account_id = account_id
        self.upi_lookup = upi_lookup


class AccountNotActiveError(TransferError):
    """Raised when either party's account is not ``ACTIVE``."""

    kind = ErrorKind.ACCOUNT_NOT_ACTIVE
    error_code = "U30"

    def __init__(self, account_id: str, status: AccountStatus) -> None:
        super().__init__(f"Account {account_id} is not active. Current status: {status.value}")
        self.account_id = account_id
        self.status = status


class InvalidAmountError(TransferError):
    """Raised for zero, negative or non-numeric amounts.

    ``amount`` is the offending value as given when it could not be read as
    a number at all.
    """

    kind = ErrorKind.INVALID_AMOUNT
    error_code = "U09"

    def __init__(self, amount: Any, validation_type: AmountValidationType) -> None:
        if isinstance(amount, Decimal) and amount.is_finite():
            shown = f"₹{amount:.2f}"
        else:
            shown = str(amount)
        super().__init__(f"Invalid amount {shown}: {validation_type.value}")
        self.amount = amount
        self.validation_type = validation_type

    @classmethod
    def negative(cls, amount: Decimal) -> "InvalidAmountError":
        return cls(amount, AmountValidationType.NEGATIVE)

    @classmethod
    def zero(cls) -> "InvalidAmountError":
        return cls(Decimal("0"), AmountValidationType.ZERO)

    @classmethod
    def not_a_number(cls, amount: Any) -> "InvalidAmountError":
        return cls(amount, AmountValidationType.NOT_A_NUMBER)

    @property
    def is_not_a_number(self) -> bool:
        return self.validation_type is AmountValidationType.NOT_A_NUMBER

    @property
    def is_negative(self) -> bool:
        return self.validation_type is AmountValidationType.NEGATIVE

    @property
    def is_zero(self) -> bool:
        return self.validation_type is AmountValidationType.ZERO


class TransactionLimitExceededError(TransferError):
    """Raised when an amount falls outside the per-transaction limits."""

    kind = ErrorKind.LIMIT_EXCEEDED
    error_code = "U09"

    def __init__(self, requested_amount: Decimal, limit: Decimal, limit_type: LimitType) -> None:
        super().__init__(
            f"{limit_type.value} exceeded: Requested ₹{requested_amount:.2f}, Limit ₹{limit:.2f}"
        )
        self.requested_amount = requested_amount
        self.limit = limit
        self.limit_type = limit_type

    @classmethod
    def below_minimum(cls, amount: Decimal, limit: Decimal) -> "TransactionLimitExceededError":
        return cls(amount, limit, LimitType.PER_TRANSACTION_MIN)

    @classmethod
    def above_maximum(cls, amount: Decimal, limit: Decimal) -> "TransactionLimitExceededError":
        return cls(amount, limit, LimitType.PER_TRANSACTION_MAX)

    @property
    def is_below_minimum(self) -> bool:
        return self.limit_type is LimitType.PER_TRANSACTION_MIN

    @property
    def is_max_limit_exceeded(self) -> bool:
        return self.limit_type is LimitType.PER_TRANSACTION_MAX

    @property
    def excess_amount(self) -> Decimal:
        """Distance from the violated bound, always positive."""
        if self.is_below_minimum:
            return self.limit - self.requested_amount
        return self.requested_amount - self.limit


class InsufficientBalanceError(TransferError):
    """Raised when the sender cannot cover the requested amount.

    ``available_balance`` is the balance minus any minimum the account must
    keep; ``shortfall`` is measured against it.
    """

    kind = ErrorKind.INSUFFICIENT_BALANCE
    error_code = "U30"

    def __init__(
        self,
        account_id: Optional[str],
        available_balance: Decimal,
        requested_amount: Decimal,
        balance: Optional[Decimal] = None,
    ) -> None:
        shortfall = requested_amount - available_balance
        prefix = "Insufficient balance" if account_id is None else f"Insufficient balance in account {account_id}"
        super().__init__(
            f"{prefix}: Available ₹{available_balance:.2f}, "
            f"Requested ₹{requested_amount:.2f}, Shortfall ₹{shortfall:.2f}"
        )
        self.account_id = account_id
        self.available_balance = available_balance
        self.requested_amount = requested_amount
        self.balance = available_balance if balance is None else balance

    @property
    def shortfall(self) -> Decimal:
        return self.requested_amount - self.available_balance

    @property
    def is_zero_balance(self) -> bool:
        return self.available_balance == 0


class SameAccountTransferError(TransferError):
    """Raised when sender and receiver are the same account."""

    kind = ErrorKind.SAME_ACCOUNT
    error_code = "U16"

    def __init__(self, account_id: str, upi_id: Optional[str] = None) -> None:
        if upi_id is None:
            message = f"Cannot transfer to the same account: {account_id}"
        else:
            message = f"UPI IDs resolve to same account: UPI={upi_id}, Account={account_id}"
        super().__init__(message)
        self.account_id = account_id
        self.upi_id = upi_id
