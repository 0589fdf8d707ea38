"""FTP storage model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin


class FTPStorage(StorageVariantMixin, Base):
    """FTP / FTPS server settings."""

    __tablename__ = "ftp_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    host = Column(String(255), nullable=False)
    port = Column(Integer, default=21, nullable=False)
    username = Column(String(255), nullable=False)
    password = Column(Text, nullable=False)  # encrypted
    use_ssl = Column(Boolean, default=False, nullable=False)
    skip_tls_verify = Column(Boolean, default=False, nullable=False)
    path = Column(String(1000), nullable=True)

    storage = relationship("Storage", back_populates="ftp_storage")

    plain_fields = ("host", "port", "username", "use_ssl", "skip_tls_verify", "path")
    sensitive_fields = ("password",)

    def validate(self, encryptor) -> None:
        self._require(host=self.host, username=self.username, password=self.password)
        self._check_port(self.port)

    def __repr__(self):
        return f"<FTPStorage(storage_id={self.storage_id}, host={self.host})>"
