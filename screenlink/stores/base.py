"""Storage interfaces for the pairing and presence services.

The services only talk to these protocols, so the state machines run the same
against SQLite (``screenlink.stores.sql``) and the in-memory fakes
(``screenlink.stores.memory``) used by the service tests.
"""

from datetime import datetime
from typing import Optional, Protocol

from screenlink.models.device import Device, Heartbeat
from screenlink.models.pairing import PairingCode


class PairingStore(Protocol):
    def code_in_use(self, code: str, now: datetime) -> bool:
        """True if any unexpired pairing code carries this value."""

    def find_for_account(self, account_id: str, code: str, now: datetime) -> Optional[PairingCode]:
        """Newest unexpired code with this value owned by ``account_id``."""

    def add(self, pairing: PairingCode) -> PairingCode: ...

    def save(self, pairing: PairingCode) -> PairingCode: ...

    def create_device_and_link(self, pairing: PairingCode, device: Device, now: datetime) -> Optional[Device]:
        """Insert ``device`` and link it to ``pairing`` as one unit.

        Returns None, leaving nothing behind, when another claim linked the
        code first.
        """

    def link_device(self, pairing: PairingCode, device_id: str, now: datetime, complete: bool = False) -> bool:
        """Set ``device_id``/``claimed_at`` only if the code is still unlinked."""

    def delete_device(self, device_id: str, now: datetime) -> int:
        """Delete the device and its heartbeats, and drop every code reference to it.

        Codes still open for the device are expired in the same write. Nothing
        changes if any part fails. Returns the number of codes detached.
        """

    def referenced_device_ids(self) -> set[str]: ...


class DeviceStore(Protocol):
    def get(self, device_id: str) -> Optional[Device]: ...

    def save(self, device: Device) -> Device: ...

    def list_for_account(self, account_id: str) -> list[Device]: ...

    def list_all(self) -> list[Device]: ...

    def add_heartbeat(self, heartbeat: Heartbeat) -> Heartbeat: ...

    def recent_heartbeats(self, device_id: str, limit: int) -> list[Heartbeat]: ...

    def playlist_owner(self, playlist_id: str) -> Optional[str]:
        """Owning account of a playlist, None if it does not exist."""
