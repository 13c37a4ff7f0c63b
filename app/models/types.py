import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from sqlalchemy import LargeBinary
from sqlalchemy.types import TypeDecorator

from app.core.settings import settings


def _fernet_for(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def field_keyring(secret: Optional[str] = None) -> MultiFernet:
    """Comma-separated secrets; the first encrypts, every one may decrypt (key rotation)."""
    material = secret or settings.field_encryption_key or settings.secret_key
    secrets = [part.strip() for part in material.split(",") if part.strip()]
    return MultiFernet([_fernet_for(part) for part in secrets])


class EncryptedString(TypeDecorator):
    """Ciphertext column for national identifiers (Aadhaar, PAN); plain ``str`` in Python."""

    impl = LargeBinary
    cache_ok = True

    def __init__(self, *, secret: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self._secret = secret

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return field_keyring(self._secret).encrypt(str(value).encode("utf-8"))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return field_keyring(self._secret).decrypt(bytes(value)).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Unable to decrypt value") from exc


__all__ = ["EncryptedString", "field_keyring"]
