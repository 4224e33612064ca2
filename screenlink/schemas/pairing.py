"""Pairing, registration and re-pair schemas."""

from typing import Any, Optional

from pydantic import Field

from screenlink.schemas.device import CamelModel, DeviceResponse, DeviceSummary


class PairingCodeRequest(CamelModel):
    screen_name: str = Field(min_length=1, max_length=100)
    device_type: str = "monitor"


class PairingCodeResponse(CamelModel):
    code: str
    expires_at: str


class PairingStatusResponse(CamelModel):
    code: str
    claimed: bool
    completed: bool
    expires_at: str
    device: Optional[DeviceSummary]


class RegisterRequest(CamelModel):
    code: str
    name: Optional[str] = None
    device_type: Optional[str] = None
    platform: Optional[str] = None
    screen_resolution: Optional[str] = None
    capabilities: dict[str, Any] = Field(default_factory=dict)
    fingerprint: str = Field(min_length=1, max_length=255)


class RegisterResponse(CamelModel):
    device: DeviceSummary
    device_token: str


class CompletePairingRequest(CamelModel):
    pairing_code: str
    screen_name: str = Field(min_length=1, max_length=100)


class RepairResponse(CamelModel):
    pairing_code: str
    expires_at: str


class CompleteRepairRequest(CamelModel):
    pairing_code: str
    platform: Optional[str] = None
    screen_resolution: Optional[str] = None
    fingerprint: Optional[str] = None


class CompleteRepairResponse(CamelModel):
    device: DeviceResponse
