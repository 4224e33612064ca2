"""Device registration: claiming pairing codes.

A code moves created -> claimed -> completed. Claims are idempotent: once a
device holds a code, repeating the claim reconnects that device instead of
creating another one, so clients may retry registration freely.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from screenlink.models.device import Device
from screenlink.models.pairing import PairingCode
from screenlink.services.code_generator import normalize_code
from screenlink.services.errors import FingerprintRequired, InvalidOrExpiredCode
from screenlink.stores.base import DeviceStore, PairingStore
from screenlink.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass
class DeviceInfo:
    """What a device reports about itself when claiming a code."""
    name: Optional[str] = None
    device_type: Optional[str] = None
    platform: Optional[str] = None
    screen_resolution: Optional[str] = None
    capabilities: dict[str, Any] = field(default_factory=dict)
    fingerprint: Optional[str] = None


@dataclass
class PairingStatus:
    pairing: PairingCode
    device: Optional[Device]

    @property
    def claimed(self) -> bool:
        return self.pairing.device_id is not None

    @property
    def completed(self) -> bool:
        return self.pairing.completed_at is not None


class DeviceRegistrar:
    def __init__(self, pairings: PairingStore, devices: DeviceStore, clock: Clock = utcnow):
        self.pairings = pairings
        self.devices = devices
        self.clock = clock

    def _lookup(self, account_id: str, code: str) -> PairingCode:
        pairing = self.pairings.find_for_account(account_id, normalize_code(code), self.clock())
        if pairing is None:
            raise InvalidOrExpiredCode()
        return pairing

    def claim_code(
        self,
        account_id: str,
        code: str,
        info: DeviceInfo,
        claimed_device_id: str | None = None,
    ) -> Device:
        """Claim ``code`` for a device and return the registered Device.

        ``claimed_device_id`` is the identity the caller asserts; it must match
        the code's re-pair target (and so is refused for plain pairing codes).
        Re-pair codes are only accepted together with that identity. Plain
        codes are bound to the fingerprint of the first device to claim them.
        """
        pairing = self._lookup(account_id, code)
        if pairing.completed_at is not None and pairing.device_id is None:
            # its device was deleted; a completed code never links again
            raise InvalidOrExpiredCode()
        if pairing.target_device_id != claimed_device_id:
            logger.info("Code %s presented for device %s it was not issued for", pairing.code, claimed_device_id)
            raise InvalidOrExpiredCode()

        if pairing.is_repair:
            if pairing.device_id is not None:
                return self._reconnect(pairing, info, verified=True)
            return self._reattach(pairing, info)

        if not info.fingerprint:
            raise FingerprintRequired()
        if pairing.device_id is not None:
            return self._reconnect(pairing, info)
        return self._create(pairing, info)

    def _create(self, pairing: PairingCode, info: DeviceInfo) -> Device:
        now = self.clock()
        device = Device(
            owner_account_id=pairing.owner_account_id,
            name=info.name or pairing.intended_device_label or f"Screen {pairing.code}",
            device_type=info.device_type or pairing.intended_device_type or "monitor",
            platform=info.platform,
            screen_resolution=info.screen_resolution,
            capabilities=json.dumps(info.capabilities) if info.capabilities else None,
            fingerprint=info.fingerprint,
            status="online",
            last_seen=now,
            created_at=now,
            updated_at=now,
        )
        created = self.pairings.create_device_and_link(pairing, device, now)
        if created is None:
            logger.warning("Concurrent claim on code %s, reconnecting to the winner", pairing.code)
            return self._reconnect(self._lookup(pairing.owner_account_id, pairing.code), info)

        logger.info("Registered device %s with code %s", created.id, pairing.code)
        return created

    def _reconnect(self, pairing: PairingCode, info: DeviceInfo, verified: bool = False) -> Device:
        """Bring the device already holding ``pairing`` back online.

        Unless the caller's identity was ``verified`` against the re-pair
        target, the presented fingerprint must equal the stored one.
        """
        device = self.devices.get(pairing.device_id) if pairing.device_id else None
        if device is None:
            raise InvalidOrExpiredCode()
        if not verified and info.fingerprint != device.fingerprint:
            logger.warning("Code %s already claimed by another device", pairing.code)
            raise InvalidOrExpiredCode()

        now = self.clock()
        device.platform = info.platform or device.platform
        device.screen_resolution = info.screen_resolution or device.screen_resolution
        device.last_seen = now
        device.status = "online"
        device.updated_at = now
        logger.info("Device %s reconnected with code %s", device.id, pairing.code)
        return self.devices.save(device)

    def _reattach(self, pairing: PairingCode, info: DeviceInfo) -> Device:
        device = self.devices.get(pairing.target_device_id)
        if device is None or device.owner_account_id != pairing.owner_account_id:
            raise InvalidOrExpiredCode()

        now = self.clock()
        if not self.pairings.link_device(pairing, device.id, now, complete=True):
            return self._reconnect(self._lookup(pairing.owner_account_id, pairing.code), info, verified=True)

        pairing.intended_device_label = device.name
        pairing.intended_device_type = device.device_type
        self.pairings.save(pairing)

        device.platform = info.platform or device.platform
        device.screen_resolution = info.screen_resolution or device.screen_resolution
        # A re-paired device has lost its old identity; adopt the new one.
        device.fingerprint = info.fingerprint or device.fingerprint
        device.status = "online"
        device.last_seen = now
        device.orphaned_at = None
        device.updated_at = now
        logger.info("Device %s re-paired with code %s", device.id, pairing.code)
        return self.devices.save(device)

    def complete_pairing(self, account_id: str, code: str, screen_name: str) -> Device:
        """Finalize a new pairing: name the screen and mark the code completed."""
        pairing = self._lookup(account_id, code)
        if pairing.device_id is None or pairing.completed_at is not None:
            raise InvalidOrExpiredCode()
        device = self.devices.get(pairing.device_id)
        if device is None:
            raise InvalidOrExpiredCode()

        now = self.clock()
        device.name = screen_name
        device.updated_at = now
        device = self.devices.save(device)

        pairing.completed_at = now
        self.pairings.save(pairing)
        logger.info("Pairing %s completed for device %s", pairing.code, device.id)
        return device

    def pairing_status(self, account_id: str, code: str) -> PairingStatus:
        pairing = self._lookup(account_id, code)
        device = self.devices.get(pairing.device_id) if pairing.device_id else None
        return PairingStatus(pairing=pairing, device=device)
