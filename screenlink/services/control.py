"""Playlist assignment and playback control.

Commands are fire-and-forget: accepting one updates the commanded
``playlist_status`` and the audit fields, and nothing confirms delivery. The
device's heartbeats report what it actually does through ``status``.
"""

import logging

from screenlink.models.device import Device
from screenlink.services.devices import require_owned_device
from screenlink.services.errors import (
    DeviceNotOnline,
    InvalidAction,
    NoPlaylistAssigned,
    NotFound,
    NotOwned,
)
from screenlink.services.presence import PresenceTracker
from screenlink.stores.base import DeviceStore
from screenlink.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

ACTION_TO_PLAYLIST_STATUS = {
    "play": "playing",
    "pause": "paused",
    "stop": "stopped",
    "restart": "playing",
}

ACTIONS_REQUIRING_PLAYLIST = {"play", "restart"}


class ControlCoordinator:
    def __init__(self, devices: DeviceStore, presence: PresenceTracker, clock: Clock = utcnow):
        self.devices = devices
        self.presence = presence
        self.clock = clock

    def assign_playlist(self, account_id: str, device_id: str, playlist_id: str | None) -> Device:
        """Bind ``playlist_id`` to the device, or clear the binding with None."""
        device = require_owned_device(self.devices, account_id, device_id)

        if playlist_id is None:
            device.assigned_playlist_id = None
            device.playlist_status = "none"
        else:
            owner = self.devices.playlist_owner(playlist_id)
            if owner is None:
                raise NotFound("Playlist not found")
            if owner != account_id:
                raise NotOwned("Playlist belongs to another account")
            device.assigned_playlist_id = playlist_id
            device.playlist_status = "assigned"

        device.updated_at = self.clock()
        logger.info("Device %s playlist set to %s", device_id, playlist_id)
        return self.devices.save(device)

    def send_control(self, account_id: str, device_id: str, action: str) -> Device:
        device = require_owned_device(self.devices, account_id, device_id)
        if action not in ACTION_TO_PLAYLIST_STATUS:
            raise InvalidAction(f"Invalid action: {action}")
        if not self.presence.is_online(device):
            raise DeviceNotOnline()
        if action in ACTIONS_REQUIRING_PLAYLIST and device.assigned_playlist_id is None:
            raise NoPlaylistAssigned()

        now = self.clock()
        # pause/stop without a playlist are audited but leave playlist_status at 'none'
        if device.assigned_playlist_id is not None:
            device.playlist_status = ACTION_TO_PLAYLIST_STATUS[action]
        device.last_control_action = action
        device.last_control_time = now
        device.updated_at = now
        logger.info("Control %s sent to device %s", action, device_id)
        return self.devices.save(device)
