from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Account(SQLModel, table=True):
    id: str = Field(primary_key=True, index=True)
    holder_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    balance_minor: int = Field(default=0, ge=0)
    status: str = Field(default="ACTIVE", max_length=20)


class Alias(SQLModel, table=True):
    alias: str = Field(primary_key=True)
    account_id: str = Field(foreign_key="account.id", index=True)


class TransactionEntry(SQLModel, table=True):
    seq: Optional[int] = Field(default=None, primary_key=True)
    reference: str = Field(index=True, unique=True)
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    sender_id: str = Field(foreign_key="account.id", index=True)
    receiver_id: str = Field(foreign_key="account.id", index=True)
    amount_minor: int
    sender_before_minor: int
    sender_after_minor: int
    receiver_before_minor: int
    receiver_after_minor: int
    status: str
