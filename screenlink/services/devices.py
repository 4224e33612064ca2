"""Device ownership, deletion and orphan reconciliation."""

import logging

from screenlink.models.device import Device
from screenlink.services.errors import NotFound, NotOwned
from screenlink.stores.base import DeviceStore, PairingStore
from screenlink.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def require_owned_device(devices: DeviceStore, account_id: str, device_id: str) -> Device:
    device = devices.get(device_id)
    if device is None:
        raise NotFound("Device not found")
    if device.owner_account_id != account_id:
        raise NotOwned("Device belongs to another account")
    return device


def delete_device(
    pairings: PairingStore,
    devices: DeviceStore,
    account_id: str,
    device_id: str,
    clock: Clock = utcnow,
) -> None:
    """Delete a device, its heartbeats and every pairing-code reference to it.

    Every unexpired code for the device is expired in the same write, so
    clearing ``device_id`` can never make one claimable again.
    """
    require_owned_device(devices, account_id, device_id)
    detached = pairings.delete_device(device_id, clock())
    logger.info("Deleted device %s (%d pairing codes detached)", device_id, detached)


def reconcile_orphans(pairings: PairingStore, devices: DeviceStore, clock: Clock = utcnow) -> list[str]:
    """Flag devices no pairing code points at; clear the flag once one does.

    Safe to run repeatedly. Returns the ids newly flagged.
    """
    now = clock()
    referenced = pairings.referenced_device_ids()
    flagged = []
    for device in devices.list_all():
        if device.id in referenced:
            if device.orphaned_at is not None:
                device.orphaned_at = None
                devices.save(device)
            continue
        if device.orphaned_at is None:
            device.orphaned_at = now
            devices.save(device)
            flagged.append(device.id)
            logger.warning("Device %s has no linking pairing code, flagged as orphan", device.id)
    return flagged
