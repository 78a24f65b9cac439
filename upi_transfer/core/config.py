from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "UPI Transfer Service"
    log_level: str = "INFO"

    repository_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite://"

    # NPCI per-transaction limits, in rupees
    min_amount: Decimal = Decimal("1.0")
    max_amount: Decimal = Decimal("100000.0")
    minimum_balance: Decimal = Decimal("0")
    amount_epsilon: Decimal = Decimal("0.001")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="UPI_",
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_limits(self) -> "Settings":
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        if self.minimum_balance < 0:
            raise ValueError("minimum_balance must not be negative")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
