"""Heartbeat ingestion and derived liveness.

Devices never hold a connection open, so "online" is inferred: a device whose
last accepted heartbeat is older than the staleness window reads as offline
whatever its stored status says. The correction happens on read; nothing
sweeps the table in the background.
"""

import json
import logging
from datetime import datetime, timedelta

from screenlink.config import settings
from screenlink.models.device import DEVICE_STATUSES, Device, Heartbeat
from screenlink.services.errors import InvalidStatus, NotFound
from screenlink.stores.base import DeviceStore
from screenlink.utils.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)

# Observed statuses that satisfy each commanded playlist status
_COMMAND_SATISFIED_BY = {
    "playing": {"playing", "restarting"},
    "paused": {"paused"},
    "stopped": {"stopped", "online"},
}


def is_stale(last_seen: datetime | None, now: datetime, window: timedelta) -> bool:
    if last_seen is None:
        return True
    return now - as_utc(last_seen) > window


def effective_status(device: Device, now: datetime, window: timedelta) -> str:
    if is_stale(device.last_seen, now, window):
        return "offline"
    return device.status


def command_pending(device: Device, observed: str) -> bool:
    """True while the last command has not shown up in the observed status."""
    if device.last_control_time is None:
        return False
    expected = _COMMAND_SATISFIED_BY.get(device.playlist_status)
    if expected is None:
        return False
    return observed not in expected


class PresenceTracker:
    def __init__(self, devices: DeviceStore, clock: Clock = utcnow, window: timedelta | None = None):
        self.devices = devices
        self.clock = clock
        self.window = window or timedelta(seconds=settings.staleness_window_seconds)

    def heartbeat(
        self,
        device_id: str,
        status: str,
        current_item: str | None = None,
        progress: float | None = None,
        metrics: dict | None = None,
    ) -> datetime:
        """Record a device report. Last write wins; returns the server time."""
        if status not in DEVICE_STATUSES:
            raise InvalidStatus(f"Unknown device status: {status}")

        device = self.devices.get(device_id)
        if device is None:
            raise NotFound("Device not found")

        now = self.clock()
        metrics_json = json.dumps(metrics) if metrics is not None else None

        device.status = status
        device.last_seen = now
        device.current_media_id = current_item
        device.playback_progress = progress
        device.performance_metrics = metrics_json
        device.updated_at = now
        self.devices.save(device)

        self.devices.add_heartbeat(
            Heartbeat(
                device_id=device_id,
                status=status,
                current_media_id=current_item,
                progress=progress,
                performance_metrics=metrics_json,
                created_at=now,
            )
        )
        logger.debug("Heartbeat from %s: status=%s progress=%s", device_id, status, progress)
        return now

    def effective_status(self, device: Device) -> str:
        return effective_status(device, self.clock(), self.window)

    def is_online(self, device: Device) -> bool:
        return self.effective_status(device) != "offline"

    def list_devices(self, account_id: str) -> list[Device]:
        return self.devices.list_for_account(account_id)

    def stale_devices(self, account_id: str) -> list[Device]:
        now = self.clock()
        return [
            d for d in self.devices.list_for_account(account_id)
            if is_stale(d.last_seen, now, self.window)
        ]

    def recent_heartbeats(self, device_id: str, limit: int | None = None) -> list[Heartbeat]:
        return self.devices.recent_heartbeats(device_id, limit or settings.heartbeat_history_limit)
