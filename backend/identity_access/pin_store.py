"""
Device-local PIN artifact.

Why: The organizer PIN gate verifies a previously confirmed PIN without a
round trip to the backend. The artifact is an argon2id hash of the PIN (salt
and cost parameters are encoded in the hash string) and lives in storage owned
by the browser (the web layer backs the mapping with cookies), independent of
the server-side PIN record.

Security: This is a UX deterrent, not an authorization boundary. Anyone who
controls the browser controls the artifact. Sensitive backend operations must
re-check permissions on their own.
"""
from __future__ import annotations

from typing import MutableMapping, Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerifyMismatchError

STORAGE_KEYS = {
    "has_pin": "radar_has_pin",
    "pin_hash": "radar_pin_hash",
}

ARGON2_PREFIX = "$argon2"

_hasher = PasswordHasher(type=Type.ID)


def hash_pin(pin: str) -> str:
    return _hasher.hash(pin)


class LocalPinStore:
    def __init__(self, storage: MutableMapping[str, str]):
        self.storage = storage

    def has_pin_set(self) -> bool:
        """A usable artifact needs the flag and an argon2 hash."""
        flag = self.storage.get(STORAGE_KEYS["has_pin"]) == "true"
        stored = self.stored_hash()
        return flag and bool(stored) and stored.startswith(ARGON2_PREFIX)

    def stored_hash(self) -> Optional[str]:
        return self.storage.get(STORAGE_KEYS["pin_hash"]) or None

    def store_pin_locally(self, pin: str) -> None:
        """Persist a fresh artifact after the backend accepted the PIN."""
        self._write(pin)

    def update_local_pin(self, pin: str) -> None:
        """Replace the artifact after a PIN reset; a new salt comes with the hash."""
        self._write(pin)

    def verify_pin_locally(self, pin: str) -> bool:
        stored = self.stored_hash()
        if not stored:
            return False
        try:
            return _hasher.verify(stored, pin)
        except (InvalidHash, VerifyMismatchError):
            return False

    def _write(self, pin: str) -> None:
        self.storage[STORAGE_KEYS["pin_hash"]] = hash_pin(pin)
        self.storage[STORAGE_KEYS["has_pin"]] = "true"
