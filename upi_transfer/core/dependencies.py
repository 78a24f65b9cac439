from typing import Optional

from sqlmodel import Session

from ..services import (
    AccountRepository,
    InMemoryAccountRepository,
    SqlAccountRepository,
    TransferService,
)
from .config import Settings, get_settings
from .db import create_engine_for_url, init_db


def get_account_repository(settings: Optional[Settings] = None) -> AccountRepository:
    settings = settings or get_settings()
    if settings.repository_backend == "memory":
        return InMemoryAccountRepository()
    if settings.repository_backend == "sql":
        engine = create_engine_for_url(settings.database_url)
        init_db(engine)
        return SqlAccountRepository(Session(engine))
    raise ValueError(f"Unknown repository backend: {settings.repository_backend}")


def get_transfer_service(
    settings: Optional[Settings] = None,
    repository: Optional[AccountRepository] = None,
) -> TransferService:
    settings = settings or get_settings()
    repository = repository or get_account_repository(settings)
    return TransferService(repository, settings)
