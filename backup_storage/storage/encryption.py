"""Sensitive field encryption/decryption utilities."""

import base64
from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

from backup_storage.config import settings

ENCRYPTED_PREFIX = "enc:"


class FieldEncryptor(Protocol):
    """Encryption capability consumed by storage variants."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...

    def is_encrypted(self, value: str) -> bool: ...


def _get_fernet(key: Optional[str] = None) -> Fernet:
    """Get Fernet instance with encryption key from settings.

    Returns:
        Fernet instance for encryption/decryption
    """
    # Ensure key is properly formatted (32 bytes base64)
    raw = (key or settings.storage_encryption_key).encode()
    if len(raw) < 32:
        # Pad key if too short (for development only - use proper key in production)
        raw = raw.ljust(32, b"=")
    return Fernet(base64.urlsafe_b64encode(raw[:32]))


class FernetFieldEncryptor:
    """Fernet-backed field encryptor.

    Ciphertext is stored with an ``enc:`` prefix so already encrypted values
    can be recognised and are never encrypted twice. Values without the
    prefix are treated as plaintext by ``decrypt``.

    Example:
        >>> encryptor = FernetFieldEncryptor()
        >>> token = encryptor.encrypt("secret")
        >>> token.startswith("enc:")
        True
        >>> encryptor.decrypt(token)
        'secret'
    """

    def __init__(self, key: Optional[str] = None):
        self._fernet = _get_fernet(key)

    def is_encrypted(self, value: str) -> bool:
        return bool(value) and value.startswith(ENCRYPTED_PREFIX)

    def encrypt(self, plaintext: str) -> str:
        if not plaintext or self.is_encrypted(plaintext):
            return plaintext
        token = self._fernet.encrypt(plaintext.encode()).decode()
        return f"{ENCRYPTED_PREFIX}{token}"

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored value.

        Raises:
            ValueError: If decryption fails (wrong key or corrupted data)
        """
        if not self.is_encrypted(ciphertext):
            return ciphertext
        try:
            token = ciphertext[len(ENCRYPTED_PREFIX):]
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken as e:
            raise ValueError(f"Failed to decrypt field: {e}")
