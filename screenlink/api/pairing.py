"""Pairing code & device registration API endpoints."""

from fastapi import APIRouter, Depends, status

from screenlink.api.deps import (
    get_current_account,
    get_generator,
    get_presence,
    get_registrar,
    http_error,
)
from screenlink.models.account import Account
from screenlink.schemas.device import DeviceEnvelope, device_response, device_summary
from screenlink.schemas.pairing import (
    CompletePairingRequest,
    PairingCodeRequest,
    PairingCodeResponse,
    PairingStatusResponse,
    RegisterRequest,
    RegisterResponse,
)
from screenlink.services.code_generator import CodeGenerator
from screenlink.services.errors import PairingError
from screenlink.services.presence import PresenceTracker
from screenlink.services.registrar import DeviceInfo, DeviceRegistrar
from screenlink.utils.clock import isoformat
from screenlink.utils.security import create_device_token

router = APIRouter(tags=["pairing"])


@router.post("/pairing-codes", response_model=PairingCodeResponse, status_code=status.HTTP_201_CREATED)
def create_pairing_code(
    request: PairingCodeRequest,
    account: Account = Depends(get_current_account),
    generator: CodeGenerator = Depends(get_generator),
):
    """Generate a short-lived code to show on the screen being paired."""
    try:
        pairing = generator.generate(account.id, request.screen_name, request.device_type)
    except PairingError as e:
        raise http_error(e)
    return PairingCodeResponse(code=pairing.code, expires_at=isoformat(pairing.expires_at))


@router.get("/pairing-codes/{code}", response_model=PairingStatusResponse)
def get_pairing_status(
    code: str,
    account: Account = Depends(get_current_account),
    registrar: DeviceRegistrar = Depends(get_registrar),
    presence: PresenceTracker = Depends(get_presence),
):
    """Poll whether a device has claimed the code yet."""
    try:
        result = registrar.pairing_status(account.id, code)
    except PairingError as e:
        raise http_error(e)

    device = result.device
    return PairingStatusResponse(
        code=result.pairing.code,
        claimed=result.claimed,
        completed=result.completed,
        expires_at=isoformat(result.pairing.expires_at),
        device=device_summary(device, presence.effective_status(device)) if device else None,
    )


@router.post("/devices/register", response_model=RegisterResponse)
def register_device(
    request: RegisterRequest,
    account: Account = Depends(get_current_account),
    registrar: DeviceRegistrar = Depends(get_registrar),
    presence: PresenceTracker = Depends(get_presence),
):
    """Claim a pairing code for this device. Safe to retry."""
    info = DeviceInfo(
        name=request.name,
        device_type=request.device_type,
        platform=request.platform,
        screen_resolution=request.screen_resolution,
        capabilities=request.capabilities,
        fingerprint=request.fingerprint,
    )
    try:
        device = registrar.claim_code(account.id, request.code, info)
    except PairingError as e:
        raise http_error(e)

    return RegisterResponse(
        device=device_summary(device, presence.effective_status(device)),
        device_token=create_device_token(device.id, account.id),
    )


@router.post("/devices/complete-pairing", response_model=DeviceEnvelope)
def complete_pairing(
    request: CompletePairingRequest,
    account: Account = Depends(get_current_account),
    registrar: DeviceRegistrar = Depends(get_registrar),
    presence: PresenceTracker = Depends(get_presence),
):
    """Name the newly claimed screen and close out its pairing code."""
    try:
        device = registrar.complete_pairing(account.id, request.pairing_code, request.screen_name)
    except PairingError as e:
        raise http_error(e)
    return DeviceEnvelope(device=device_response(device, presence.effective_status(device)))
