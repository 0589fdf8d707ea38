"""Shared behaviour of storage variant rows."""

from typing import Tuple

from backup_storage.storage.base import StorageValidationError
from backup_storage.storage.encryption import FieldEncryptor


class StorageVariantMixin:
    """Data-level half of the storage capability contract.

    Subclasses list their plain and secret columns. Secret columns are
    encrypted in place before persisting and blanked before a row leaves
    the service layer.
    """

    plain_fields: Tuple[str, ...] = ()
    sensitive_fields: Tuple[str, ...] = ()

    def validate(self, encryptor: FieldEncryptor) -> None:
        raise NotImplementedError

    def hide_sensitive_data(self) -> None:
        for name in self.sensitive_fields:
            setattr(self, name, "")

    def encrypt_sensitive_data(self, encryptor: FieldEncryptor) -> None:
        for name in self.sensitive_fields:
            value = getattr(self, name)
            if value and not encryptor.is_encrypted(value):
                setattr(self, name, encryptor.encrypt(value))

    def update(self, incoming) -> None:
        """Merge fields from an incoming row.

        Secrets are only replaced when the incoming value is non-empty, so a
        client echoing back a hidden row keeps the stored credentials.
        """
        columns = self.__table__.columns
        for name in self.plain_fields:
            value = getattr(incoming, name)
            # Omitted values on a NOT NULL column keep the stored value
            if value is None and not columns[name].nullable:
                continue
            setattr(self, name, value)
        for name in self.sensitive_fields:
            value = getattr(incoming, name)
            if value:
                setattr(self, name, value)

    def _require(self, **fields) -> None:
        for label, value in fields.items():
            if value is None or value == "":
                raise StorageValidationError(f"{label.replace('_', ' ')} is required")

    @staticmethod
    def _check_port(port) -> None:
        """Check an explicit port. ``None`` falls back to the column default."""
        if port is None:
            return
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise StorageValidationError(f"invalid port: {port!r}")
        if not 0 < port <= 65535:
            raise StorageValidationError("port must be between 1 and 65535")
