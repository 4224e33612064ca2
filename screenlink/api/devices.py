"""Device management, presence and control API endpoints."""

from fastapi import APIRouter, Depends, Query, status

from screenlink.api.deps import (
    get_clock,
    get_control,
    get_current_account,
    get_device_store,
    get_pairing_store,
    get_presence,
    get_repair,
    http_error,
    require_device_access,
)
from screenlink.models.account import Account
from screenlink.models.device import Device
from screenlink.schemas.device import (
    AssignmentResponse,
    AssignPlaylistRequest,
    ControlDevice,
    ControlRequest,
    ControlResponse,
    DeviceEnvelope,
    DeviceListResponse,
    HeartbeatListResponse,
    HeartbeatRecord,
    HeartbeatRequest,
    HeartbeatResponse,
    MessageResponse,
    device_response,
)
from screenlink.schemas.pairing import (
    CompleteRepairRequest,
    CompleteRepairResponse,
    RepairResponse,
)
from screenlink.services.control import ControlCoordinator
from screenlink.services.devices import delete_device, require_owned_device
from screenlink.services.errors import PairingError
from screenlink.services.presence import PresenceTracker
from screenlink.services.registrar import DeviceInfo
from screenlink.services.repair import RepairFlow
from screenlink.stores.sql import SqlDeviceStore, SqlPairingStore
from screenlink.utils.clock import Clock, isoformat

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("", response_model=DeviceListResponse)
def list_devices(
    stale_only: bool = Query(default=False),
    account: Account = Depends(get_current_account),
    presence: PresenceTracker = Depends(get_presence),
):
    """List the account's devices with staleness-corrected status."""
    if stale_only:
        devices = presence.stale_devices(account.id)
    else:
        devices = presence.list_devices(account.id)
    return DeviceListResponse(
        devices=[device_response(d, presence.effective_status(d)) for d in devices],
        total=len(devices),
    )


@router.get("/{device_id}", response_model=DeviceEnvelope)
def get_device(
    device_id: str,
    account: Account = Depends(get_current_account),
    devices: SqlDeviceStore = Depends(get_device_store),
    presence: PresenceTracker = Depends(get_presence),
):
    try:
        device = require_owned_device(devices, account.id, device_id)
    except PairingError as e:
        raise http_error(e)
    return DeviceEnvelope(device=device_response(device, presence.effective_status(device)))


@router.delete("/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_device(
    device_id: str,
    account: Account = Depends(get_current_account),
    pairings: SqlPairingStore = Depends(get_pairing_store),
    devices: SqlDeviceStore = Depends(get_device_store),
    clock: Clock = Depends(get_clock),
):
    """Delete a device together with its heartbeat history."""
    try:
        delete_device(pairings, devices, account.id, device_id, clock=clock)
    except PairingError as e:
        raise http_error(e)


# --- Re-pair ---

@router.post("/{device_id}/repair", response_model=RepairResponse)
def request_repair(
    device_id: str,
    account: Account = Depends(get_current_account),
    repair: RepairFlow = Depends(get_repair),
):
    """Generate a pairing code bound to an existing device."""
    try:
        pairing = repair.request_repair(account.id, device_id)
    except PairingError as e:
        raise http_error(e)
    return RepairResponse(pairing_code=pairing.code, expires_at=isoformat(pairing.expires_at))


@router.post("/{device_id}/complete-repair", response_model=CompleteRepairResponse)
def complete_repair(
    device_id: str,
    request: CompleteRepairRequest,
    account: Account = Depends(get_current_account),
    repair: RepairFlow = Depends(get_repair),
    presence: PresenceTracker = Depends(get_presence),
):
    info = DeviceInfo(
        platform=request.platform,
        screen_resolution=request.screen_resolution,
        fingerprint=request.fingerprint,
    )
    try:
        device = repair.complete_repair(account.id, device_id, request.pairing_code, info)
    except PairingError as e:
        raise http_error(e)
    return CompleteRepairResponse(device=device_response(device, presence.effective_status(device)))


# --- Presence ---

@router.post("/{device_id}/heartbeat", response_model=HeartbeatResponse)
def heartbeat(
    request: HeartbeatRequest,
    device: Device = Depends(require_device_access),
    presence: PresenceTracker = Depends(get_presence),
):
    """Device-side report of what it is actually doing."""
    try:
        server_time = presence.heartbeat(
            device.id,
            status=request.status,
            current_item=request.current_item,
            progress=request.progress,
            metrics=request.performance_metrics,
        )
    except PairingError as e:
        raise http_error(e)
    return HeartbeatResponse(server_time=isoformat(server_time))


@router.get("/{device_id}/heartbeats", response_model=HeartbeatListResponse)
def list_heartbeats(
    device_id: str,
    limit: int = Query(default=20, ge=1, le=200),
    account: Account = Depends(get_current_account),
    devices: SqlDeviceStore = Depends(get_device_store),
    presence: PresenceTracker = Depends(get_presence),
):
    """Most recent heartbeats, newest first."""
    try:
        require_owned_device(devices, account.id, device_id)
    except PairingError as e:
        raise http_error(e)
    return HeartbeatListResponse(
        heartbeats=[
            HeartbeatRecord(
                status=h.status,
                current_media_id=h.current_media_id,
                progress=h.progress,
                created_at=isoformat(h.created_at),
            )
            for h in presence.recent_heartbeats(device_id, limit)
        ]
    )


# --- Assignment & control ---

@router.post("/{device_id}/assign-playlist", response_model=MessageResponse)
def assign_playlist(
    device_id: str,
    request: AssignPlaylistRequest,
    account: Account = Depends(get_current_account),
    control: ControlCoordinator = Depends(get_control),
):
    try:
        control.assign_playlist(account.id, device_id, request.playlist_id)
    except PairingError as e:
        raise http_error(e)
    if request.playlist_id is None:
        return MessageResponse(message="Playlist unassigned successfully")
    return MessageResponse(message="Playlist assigned successfully")


@router.get("/{device_id}/playlist", response_model=AssignmentResponse)
def get_assignment(device: Device = Depends(require_device_access)):
    """Playlist the device should be running, polled by the device itself."""
    return AssignmentResponse(
        playlist_id=device.assigned_playlist_id,
        playlist_status=device.playlist_status,
        last_control_action=device.last_control_action,
        last_control_time=isoformat(device.last_control_time),
    )


@router.post("/{device_id}/control", response_model=ControlResponse)
def send_control(
    device_id: str,
    request: ControlRequest,
    account: Account = Depends(get_current_account),
    control: ControlCoordinator = Depends(get_control),
):
    """Issue play/pause/stop/restart. Delivery is not confirmed."""
    try:
        device = control.send_control(account.id, device_id, request.action)
    except PairingError as e:
        raise http_error(e)
    return ControlResponse(
        device=ControlDevice(
            id=device.id,
            playlist_status=device.playlist_status,
            last_control_action=device.last_control_action,
            last_control_time=isoformat(device.last_control_time),
        )
    )
