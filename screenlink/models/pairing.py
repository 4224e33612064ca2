"""Pairing code model."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class PairingCode(SQLModel, table=True):
    __tablename__ = "pairing_codes"

    id: str = Field(default_factory=lambda: f"pc_{secrets.token_hex(4)}", primary_key=True)
    code: str = Field(index=True)  # unique among active codes only
    owner_account_id: str = Field(foreign_key="accounts.id", index=True)
    intended_device_label: Optional[str] = None
    intended_device_type: Optional[str] = None
    target_device_id: Optional[str] = Field(default=None, foreign_key="devices.id")  # re-pair only
    device_id: Optional[str] = Field(default=None, foreign_key="devices.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime = Field(index=True)
    claimed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_repair(self) -> bool:
        return self.target_device_id is not None
