"""Pairing code generation."""

import logging
import secrets
from datetime import timedelta

from screenlink.config import settings
from screenlink.models.pairing import PairingCode
from screenlink.services.errors import GenerationExhausted
from screenlink.stores.base import PairingStore
from screenlink.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def random_code(length: int, alphabet: str) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CodeGenerator:
    """Issues short-lived pairing codes, unique among unexpired codes."""

    def __init__(
        self,
        store: PairingStore,
        clock: Clock = utcnow,
        length: int | None = None,
        alphabet: str | None = None,
        ttl: timedelta | None = None,
        max_attempts: int | None = None,
    ):
        self.store = store
        self.clock = clock
        self.length = length or settings.pairing_code_length
        self.alphabet = alphabet or settings.pairing_code_alphabet
        self.ttl = ttl or timedelta(minutes=settings.pairing_code_ttl_minutes)
        self.max_attempts = max_attempts or settings.pairing_code_max_attempts

    def _unique_code(self) -> str:
        now = self.clock()
        for attempt in range(1, self.max_attempts + 1):
            candidate = random_code(self.length, self.alphabet)
            if not self.store.code_in_use(candidate, now):
                return candidate
            logger.info("Pairing code collision on attempt %d, regenerating", attempt)
        raise GenerationExhausted(
            f"No free pairing code after {self.max_attempts} attempts"
        )

    def generate(
        self,
        account_id: str,
        label: str | None = None,
        device_type: str | None = None,
    ) -> PairingCode:
        """Create a code for pairing a new screen."""
        return self._issue(
            account_id,
            intended_device_label=label,
            intended_device_type=device_type,
        )

    def generate_repair(self, account_id: str, target_device_id: str) -> PairingCode:
        """Create a code bound to an existing device for re-pairing."""
        return self._issue(account_id, target_device_id=target_device_id)

    def _issue(self, account_id: str, **fields) -> PairingCode:
        code = self._unique_code()
        now = self.clock()
        pairing = PairingCode(
            code=code,
            owner_account_id=account_id,
            created_at=now,
            expires_at=now + self.ttl,
            **fields,
        )
        pairing = self.store.add(pairing)
        logger.info(
            "Issued pairing code %s for account %s (repair=%s)",
            code, account_id, pairing.is_repair,
        )
        return pairing
