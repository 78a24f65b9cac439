from .locking import AccountLocks
from .repository import AccountRepository, InMemoryAccountRepository, SqlAccountRepository
from .transfer import TransferService

__all__ = [
    "AccountLocks",
    "AccountRepository",
    "InMemoryAccountRepository",
    "SqlAccountRepository",
    "TransferService",
]
