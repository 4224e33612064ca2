"""Device, heartbeat and control schemas."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from screenlink.services.presence import command_pending
from screenlink.utils.clock import isoformat

DeviceStatus = Literal["offline", "online", "playing", "paused", "stopped", "restarting"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeviceSummary(CamelModel):
    id: str
    name: str
    status: str
    created_at: str
    last_seen: Optional[str]


class DeviceResponse(CamelModel):
    id: str
    name: str
    device_type: str
    platform: Optional[str]
    screen_resolution: Optional[str]
    status: str
    last_seen: Optional[str]
    current_media_id: Optional[str]
    playback_progress: Optional[float]
    assigned_playlist_id: Optional[str]
    playlist_status: str
    command_pending: bool
    last_control_action: Optional[str]
    last_control_time: Optional[str]
    orphaned: bool
    created_at: str


class DeviceEnvelope(BaseModel):
    device: DeviceResponse


class DeviceListResponse(BaseModel):
    devices: list[DeviceResponse]
    total: int


# --- Heartbeat ---

class HeartbeatRequest(CamelModel):
    status: DeviceStatus
    current_item: Optional[str] = None
    progress: Optional[float] = None
    performance_metrics: Optional[dict[str, Any]] = None


class HeartbeatResponse(CamelModel):
    server_time: str


class HeartbeatRecord(CamelModel):
    status: str
    current_media_id: Optional[str]
    progress: Optional[float]
    created_at: str


class HeartbeatListResponse(BaseModel):
    heartbeats: list[HeartbeatRecord]


# --- Assignment & control ---

class AssignPlaylistRequest(CamelModel):
    playlist_id: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class AssignmentResponse(CamelModel):
    playlist_id: Optional[str]
    playlist_status: str
    last_control_action: Optional[str]
    last_control_time: Optional[str]


class ControlRequest(BaseModel):
    action: str


class ControlDevice(BaseModel):
    id: str
    playlist_status: str
    last_control_action: Optional[str]
    last_control_time: Optional[str]


class ControlResponse(BaseModel):
    device: ControlDevice


def device_summary(device, status: str) -> DeviceSummary:
    return DeviceSummary(
        id=device.id,
        name=device.name,
        status=status,
        created_at=isoformat(device.created_at),
        last_seen=isoformat(device.last_seen),
    )


def device_response(device, status: str) -> DeviceResponse:
    """Serialize a device with its effective (staleness-corrected) status."""
    return DeviceResponse(
        id=device.id,
        name=device.name,
        device_type=device.device_type,
        platform=device.platform,
        screen_resolution=device.screen_resolution,
        status=status,
        last_seen=isoformat(device.last_seen),
        current_media_id=device.current_media_id,
        playback_progress=device.playback_progress,
        assigned_playlist_id=device.assigned_playlist_id,
        playlist_status=device.playlist_status,
        command_pending=command_pending(device, status),
        last_control_action=device.last_control_action,
        last_control_time=isoformat(device.last_control_time),
        orphaned=device.orphaned_at is not None,
        created_at=isoformat(device.created_at),
    )
