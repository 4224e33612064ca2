"""Common API dependencies: token checks, stores and service wiring."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from screenlink.database import get_session
from screenlink.models.account import Account
from screenlink.models.device import Device
from screenlink.services.code_generator import CodeGenerator
from screenlink.services.control import ControlCoordinator
from screenlink.services.errors import PairingError
from screenlink.services.presence import PresenceTracker
from screenlink.services.registrar import DeviceRegistrar
from screenlink.services.repair import RepairFlow
from screenlink.stores.sql import SqlDeviceStore, SqlPairingStore
from screenlink.utils.clock import Clock, utcnow
from screenlink.utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def http_error(exc: PairingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


def _decode(credentials: HTTPAuthorizationCredentials | None) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        return decode_token(credentials.credentials)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Account:
    """Extract and validate the account from a JWT access token."""
    payload = _decode(credentials)
    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    account = session.get(Account, payload["sub"])
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
        )
    return account


def get_clock() -> Clock:
    return utcnow


def get_pairing_store(session: Session = Depends(get_session)) -> SqlPairingStore:
    return SqlPairingStore(session)


def get_device_store(session: Session = Depends(get_session)) -> SqlDeviceStore:
    return SqlDeviceStore(session)


def get_presence(
    devices: SqlDeviceStore = Depends(get_device_store),
    clock: Clock = Depends(get_clock),
) -> PresenceTracker:
    return PresenceTracker(devices, clock=clock)


def get_generator(
    pairings: SqlPairingStore = Depends(get_pairing_store),
    clock: Clock = Depends(get_clock),
) -> CodeGenerator:
    return CodeGenerator(pairings, clock=clock)


def get_registrar(
    pairings: SqlPairingStore = Depends(get_pairing_store),
    devices: SqlDeviceStore = Depends(get_device_store),
    clock: Clock = Depends(get_clock),
) -> DeviceRegistrar:
    return DeviceRegistrar(pairings, devices, clock=clock)


def get_control(
    devices: SqlDeviceStore = Depends(get_device_store),
    presence: PresenceTracker = Depends(get_presence),
    clock: Clock = Depends(get_clock),
) -> ControlCoordinator:
    return ControlCoordinator(devices, presence, clock=clock)


def get_repair(
    generator: CodeGenerator = Depends(get_generator),
    registrar: DeviceRegistrar = Depends(get_registrar),
) -> RepairFlow:
    return RepairFlow(generator, registrar)


def require_device_access(
    device_id: str,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    devices: SqlDeviceStore = Depends(get_device_store),
) -> Device:
    """Allow the device's own token, or an access token of its owning account."""
    payload = _decode(credentials)
    token_type = payload.get("type")
    if token_type not in ("access", "device"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    device = devices.get(device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")

    if token_type == "device":
        allowed = payload.get("dev") == device.id
    else:
        allowed = payload.get("sub") == device.owner_account_id
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token not valid for this device",
        )
    return device
