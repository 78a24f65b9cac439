import logging
from typing import Optional

from .core.config import Settings, get_settings
from .core.dependencies import get_transfer_service
from .services import AccountRepository, TransferService


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)


def create_transfer_service(
    settings: Optional[Settings] = None,
    repository: Optional[AccountRepository] = None,
) -> TransferService:
    settings = settings or get_settings()
    configure_logging(settings)
    return get_transfer_service(settings, repository)
