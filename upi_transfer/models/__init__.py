from .db import Account as AccountModel
from .db import Alias as AliasModel
from .db import TransactionEntry as TransactionEntryModel
from .schemas import (
    Account,
    AccountStatus,
    TransactionRecord,
    TransactionStatus,
    TransferResult,
)

__all__ = [
    "Account",
    "AccountStatus",
    "TransactionRecord",
    "TransactionStatus",
    "TransferResult",
    "AccountModel",
    "AliasModel",
    "TransactionEntryModel",
]
