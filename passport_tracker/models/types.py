import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import LargeBinary
from sqlalchemy.types import TypeDecorator

from passport_tracker.core.settings import settings


def _fernet_for(secret: Optional[str]) -> Fernet:
    digest = hashlib.sha256((secret or settings.secret_key).encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class EncryptedString(TypeDecorator):
    """String column sealed with Fernet; used for identity numbers of references."""

    impl = LargeBinary
    cache_ok = True

    def __init__(self, *, secret: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self._secret = secret

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return _fernet_for(self._secret).encrypt(str(value).encode("utf-8"))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return _fernet_for(self._secret).decrypt(bytes(value)).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Unable to decrypt sealed column") from exc


def mask_identifier(value: Optional[str], visible: int = 4) -> Optional[str]:
    if not value:
        return value
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


__all__ = ["EncryptedString", "mask_identifier"]
