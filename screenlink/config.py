"""ScreenLink Server Configuration."""

import secrets
import string
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "ScreenLink"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    data_dir: Path = Path.home() / "screenlink" / "data"

    # Database
    db_path: Path = Path.home() / "screenlink" / "data" / "screenlink.db"

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours
    device_token_expire_days: int = 365

    # Pairing
    pairing_code_length: int = 6
    pairing_code_alphabet: str = string.ascii_uppercase + string.digits
    pairing_code_ttl_minutes: int = 15
    pairing_code_max_attempts: int = 10

    # Presence
    heartbeat_interval_seconds: int = 30
    staleness_window_seconds: int = 90  # 3 missed heartbeats
    heartbeat_history_limit: int = 50

    # Maintenance
    reconcile_on_startup: bool = True

    model_config = {"env_prefix": "SCREENLINK_"}

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate the JWT secret if not set, persist it so tokens survive restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)

        secrets_file.write_text(f"jwt_secret={self.jwt_secret}\n")


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
