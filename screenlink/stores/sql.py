"""SQLModel-backed stores."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from screenlink.models.account import Playlist
from screenlink.models.device import Device, Heartbeat
from screenlink.models.pairing import PairingCode
from screenlink.services.errors import StorageFailure

logger = logging.getLogger(__name__)


class BaseStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _writing(self):
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Storage write failed: %s", e)
            raise StorageFailure(str(e)) from e

    def _persist(self, obj):
        with self._writing():
            self.session.add(obj)
        self.session.refresh(obj)
        return obj


class SqlPairingStore(BaseStore):
    def code_in_use(self, code: str, now: datetime) -> bool:
        existing = self.session.exec(
            select(PairingCode.id).where(
                PairingCode.code == code,
                PairingCode.expires_at > now,
            )
        ).first()
        return existing is not None

    def find_for_account(self, account_id: str, code: str, now: datetime) -> Optional[PairingCode]:
        return self.session.exec(
            select(PairingCode)
            .where(
                PairingCode.code == code,
                PairingCode.owner_account_id == account_id,
                PairingCode.expires_at > now,
            )
            .order_by(col(PairingCode.created_at).desc())
        ).first()

    def add(self, pairing: PairingCode) -> PairingCode:
        return self._persist(pairing)

    def save(self, pairing: PairingCode) -> PairingCode:
        return self._persist(pairing)

    def _link_statement(self, pairing_id: str, device_id: str, now: datetime, complete: bool):
        values = {"device_id": device_id, "claimed_at": now}
        if complete:
            values["completed_at"] = now
        return (
            update(PairingCode)
            .where(PairingCode.id == pairing_id, col(PairingCode.device_id).is_(None))
            .values(**values)
        )

    def create_device_and_link(self, pairing: PairingCode, device: Device, now: datetime) -> Optional[Device]:
        try:
            self.session.add(device)
            self.session.flush()
            result = self.session.exec(self._link_statement(pairing.id, device.id, now, False))
            if result.rowcount != 1:
                # Another claim won the compare-and-set; drop our device insert.
                self.session.rollback()
                return None
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Device create/link failed for code %s: %s", pairing.code, e)
            raise StorageFailure(str(e)) from e
        self.session.refresh(device)
        self.session.refresh(pairing)
        return device

    def link_device(self, pairing: PairingCode, device_id: str, now: datetime, complete: bool = False) -> bool:
        with self._writing():
            result = self.session.exec(self._link_statement(pairing.id, device_id, now, complete))
        self.session.refresh(pairing)
        return result.rowcount == 1

    def delete_device(self, device_id: str, now: datetime) -> int:
        refs = or_(PairingCode.device_id == device_id, PairingCode.target_device_id == device_id)
        with self._writing():
            self.session.exec(
                update(PairingCode).where(refs, PairingCode.expires_at > now).values(expires_at=now)
            )
            result = self.session.exec(
                update(PairingCode).where(refs).values(device_id=None, target_device_id=None)
            )
            self.session.exec(delete(Heartbeat).where(Heartbeat.device_id == device_id))
            device = self.session.get(Device, device_id)
            if device:
                self.session.delete(device)
        return result.rowcount

    def referenced_device_ids(self) -> set[str]:
        rows = self.session.exec(select(PairingCode.device_id, PairingCode.target_device_id)).all()
        return {ref for row in rows for ref in row if ref}


class SqlDeviceStore(BaseStore):
    def get(self, device_id: str) -> Optional[Device]:
        return self.session.get(Device, device_id)

    def save(self, device: Device) -> Device:
        return self._persist(device)

    def list_for_account(self, account_id: str) -> list[Device]:
        return list(
            self.session.exec(
                select(Device)
                .where(Device.owner_account_id == account_id)
                .order_by(col(Device.created_at).desc())
            ).all()
        )

    def list_all(self) -> list[Device]:
        return list(self.session.exec(select(Device)).all())

    def add_heartbeat(self, heartbeat: Heartbeat) -> Heartbeat:
        return self._persist(heartbeat)

    def recent_heartbeats(self, device_id: str, limit: int) -> list[Heartbeat]:
        return list(
            self.session.exec(
                select(Heartbeat)
                .where(Heartbeat.device_id == device_id)
                .order_by(col(Heartbeat.created_at).desc(), col(Heartbeat.id).desc())
                .limit(limit)
            ).all()
        )

    def playlist_owner(self, playlist_id: str) -> Optional[str]:
        playlist = self.session.get(Playlist, playlist_id)
        return playlist.owner_account_id if playlist else None
