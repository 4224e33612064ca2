"""Account and Playlist models.

Both are owned by the outer dashboard; this service only reads them for
authentication and ownership checks.
"""

import secrets
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    id: str = Field(default_factory=lambda: f"acc_{secrets.token_hex(4)}", primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Playlist(SQLModel, table=True):
    __tablename__ = "playlists"

    id: str = Field(default_factory=lambda: f"pls_{secrets.token_hex(4)}", primary_key=True)
    owner_account_id: str = Field(foreign_key="accounts.id", index=True)
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
