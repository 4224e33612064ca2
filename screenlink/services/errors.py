"""Pairing & presence error taxonomy.

Every error carries the HTTP status the API layer answers with and a short
machine-readable code for clients.
"""


class PairingError(Exception):
    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_detail(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidOrExpiredCode(PairingError):
    # Also raised for codes owned by another account, so existence never leaks.
    status_code = 400
    code = "invalid_or_expired_code"
    default_message = "Invalid or expired pairing code"


class FingerprintRequired(PairingError):
    status_code = 400
    code = "fingerprint_required"
    default_message = "A device fingerprint is required to claim a pairing code"


class GenerationExhausted(PairingError):
    status_code = 503
    code = "generation_exhausted"
    default_message = "Failed to generate unique pairing code"


class DeviceNotOnline(PairingError):
    status_code = 400
    code = "device_not_online"
    default_message = "Device is offline"


class InvalidAction(PairingError):
    status_code = 400
    code = "invalid_action"
    default_message = "Invalid action"


class InvalidStatus(PairingError):
    status_code = 400
    code = "invalid_status"
    default_message = "Invalid device status"


class NoPlaylistAssigned(PairingError):
    status_code = 400
    code = "no_playlist_assigned"
    default_message = "No playlist assigned to device"


class NotFound(PairingError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class NotOwned(PairingError):
    status_code = 403
    code = "not_owned"
    default_message = "Not owned by the current account"


class StorageFailure(PairingError):
    status_code = 500
    code = "storage_failure"
    default_message = "Storage failure"
