"""In-memory stores implementing the same protocols as the SQL stores."""

import threading
from datetime import datetime
from typing import Optional

from screenlink.models.device import Device, Heartbeat
from screenlink.models.pairing import PairingCode


class MemoryDeviceStore:
    def __init__(self):
        self.devices: dict[str, Device] = {}
        self.heartbeats: list[Heartbeat] = []
        self.playlists: dict[str, str] = {}  # playlist_id -> owner_account_id

    def add_playlist(self, playlist_id: str, owner_account_id: str) -> None:
        self.playlists[playlist_id] = owner_account_id

    def get(self, device_id: str) -> Optional[Device]:
        return self.devices.get(device_id)

    def save(self, device: Device) -> Device:
        self.devices[device.id] = device
        return device

    def list_for_account(self, account_id: str) -> list[Device]:
        found = [d for d in self.devices.values() if d.owner_account_id == account_id]
        return sorted(found, key=lambda d: d.created_at, reverse=True)

    def list_all(self) -> list[Device]:
        return list(self.devices.values())

    def add_heartbeat(self, heartbeat: Heartbeat) -> Heartbeat:
        heartbeat.id = len(self.heartbeats) + 1
        self.heartbeats.append(heartbeat)
        return heartbeat

    def recent_heartbeats(self, device_id: str, limit: int) -> list[Heartbeat]:
        found = [h for h in self.heartbeats if h.device_id == device_id]
        return list(reversed(found))[:limit]

    def playlist_owner(self, playlist_id: str) -> Optional[str]:
        return self.playlists.get(playlist_id)


class MemoryPairingStore:
    def __init__(self, devices: MemoryDeviceStore):
        self.devices = devices
        self.codes: dict[str, PairingCode] = {}
        self._lock = threading.Lock()

    def code_in_use(self, code: str, now: datetime) -> bool:
        return any(p.code == code and p.expires_at > now for p in self.codes.values())

    def find_for_account(self, account_id: str, code: str, now: datetime) -> Optional[PairingCode]:
        matches = [
            p for p in self.codes.values()
            if p.code == code and p.owner_account_id == account_id and p.expires_at > now
        ]
        if not matches:
            return None
        return max(matches, key=lambda p: p.created_at)

    def add(self, pairing: PairingCode) -> PairingCode:
        self.codes[pairing.id] = pairing
        return pairing

    def save(self, pairing: PairingCode) -> PairingCode:
        self.codes[pairing.id] = pairing
        return pairing

    def create_device_and_link(self, pairing: PairingCode, device: Device, now: datetime) -> Optional[Device]:
        with self._lock:
            stored = self.codes[pairing.id]
            if stored.device_id is not None:
                return None
            self.devices.save(device)
            stored.device_id = device.id
            stored.claimed_at = now
        return device

    def link_device(self, pairing: PairingCode, device_id: str, now: datetime, complete: bool = False) -> bool:
        with self._lock:
            stored = self.codes[pairing.id]
            if stored.device_id is not None:
                return False
            stored.device_id = device_id
            stored.claimed_at = now
            if complete:
                stored.completed_at = now
        return True

    def delete_device(self, device_id: str, now: datetime) -> int:
        count = 0
        with self._lock:
            for p in self.codes.values():
                if device_id not in (p.device_id, p.target_device_id):
                    continue
                if p.expires_at > now:
                    p.expires_at = now
                p.device_id = None
                p.target_device_id = None
                count += 1
            self.devices.heartbeats = [h for h in self.devices.heartbeats if h.device_id != device_id]
            self.devices.devices.pop(device_id, None)
        return count

    def referenced_device_ids(self) -> set[str]:
        refs = set()
        for p in self.codes.values():
            refs.update(ref for ref in (p.device_id, p.target_device_id) if ref)
        return refs
