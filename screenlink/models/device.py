"""Device and Heartbeat models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

DEVICE_STATUSES = ("offline", "online", "playing", "paused", "stopped", "restarting")
PLAYLIST_STATUSES = ("none", "assigned", "playing", "paused", "stopped")


class Device(SQLModel, table=True):
    __tablename__ = "devices"

    id: str = Field(default_factory=lambda: f"dev_{secrets.token_hex(4)}", primary_key=True)
    owner_account_id: Optional[str] = Field(default=None, foreign_key="accounts.id", index=True)
    name: str
    device_type: str  # 'tv' | 'monitor' | 'browser' | ...
    platform: Optional[str] = None
    capabilities: Optional[str] = None  # JSON
    screen_resolution: Optional[str] = None
    fingerprint: Optional[str] = Field(default=None, index=True)

    # Observed state, reported by heartbeats
    status: str = Field(default="offline")
    last_seen: Optional[datetime] = None
    current_media_id: Optional[str] = None
    playback_progress: Optional[float] = None
    performance_metrics: Optional[str] = None  # JSON

    # Commanded state, written by assignment and control
    assigned_playlist_id: Optional[str] = Field(default=None, foreign_key="playlists.id")
    playlist_status: str = Field(default="none")
    last_control_action: Optional[str] = None
    last_control_time: Optional[datetime] = None

    orphaned_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Heartbeat(SQLModel, table=True):
    __tablename__ = "heartbeats"

    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(foreign_key="devices.id", index=True)
    status: str
    current_media_id: Optional[str] = None
    progress: Optional[float] = None
    performance_metrics: Optional[str] = None  # JSON
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
