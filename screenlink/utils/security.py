"""Security utilities: JWT tokens, password hashing."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from screenlink.config import settings


# --- Password Hashing ---

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


# --- JWT Tokens ---

def create_access_token(account_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_device_token(device_id: str, account_id: str) -> str:
    """Device-scoped bearer, issued once a device claims a pairing code."""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.device_token_expire_days)
    payload = {
        "sub": account_id,
        "dev": device_id,
        "exp": expire,
        "type": "device",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
