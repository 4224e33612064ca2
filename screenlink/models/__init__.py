"""ScreenLink Database Models."""

from screenlink.models.account import Account, Playlist
from screenlink.models.device import Device, Heartbeat
from screenlink.models.pairing import PairingCode

__all__ = [
    "Account",
    "Playlist",
    "Device",
    "Heartbeat",
    "PairingCode",
]
