from .core.config import Settings, get_settings
from .core.errors import (
    AccountNotActiveError,
    AccountNotFoundError,
    AmountValidationType,
    ErrorKind,
    InsufficientBalanceError,
    InvalidAmountError,
    LimitType,
    SameAccountTransferError,
    TransactionLimitExceededError,
    TransferError,
)
from .main import configure_logging, create_transfer_service
from .models import Account, AccountStatus, TransactionRecord, TransactionStatus, TransferResult
from .services import (
    AccountLocks,
    AccountRepository,
    InMemoryAccountRepository,
    SqlAccountRepository,
    TransferService,
)

__all__ = [
    "Account",
    "AccountLocks",
    "AccountNotActiveError",
    "AccountNotFoundError",
    "AccountRepository",
    "AccountStatus",
    "AmountValidationType",
    "ErrorKind",
    "InMemoryAccountRepository",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "LimitType",
    "SameAccountTransferError",
    "Settings",
    "SqlAccountRepository",
    "TransactionLimitExceededError",
    "TransactionRecord",
    "TransactionStatus",
    "TransferError",
    "TransferResult",
    "TransferService",
    "configure_logging",
    "create_transfer_service",
    "get_settings",
]
