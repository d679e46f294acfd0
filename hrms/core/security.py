"""
Field-level encryption for bank account numbers stored on employee records.
"""
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from hrms.core.config import settings

logger = logging.getLogger(__name__)

_fernet = Fernet(settings.encryption_key)


def encrypt_data(plaintext: Optional[str]) -> Optional[str]:
    if not plaintext:
        return plaintext
    return _fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt_data(token: Optional[str]) -> Optional[str]:
    """Rows written before encryption was enabled come back unchanged."""
    if not token:
        return token
    try:
        return _fernet.decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, UnicodeEncodeError):
        logger.warning("Stored value is not a valid Fernet token; returning it as-is")
        return token


def mask_account_number(value: Optional[str]) -> Optional[str]:
    """Keep only the last four characters visible."""
    if not value:
        return value
    return "*" * max(len(value) - 4, 0) + value[-4:]
