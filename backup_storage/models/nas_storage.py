"""NAS (SMB share) storage model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin


class NASStorage(StorageVariantMixin, Base):
    """SMB share on a network-attached storage device."""

    __tablename__ = "nas_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    host = Column(String(255), nullable=False)
    port = Column(Integer, default=445, nullable=False)
    share = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False)
    password = Column(Text, nullable=False)  # encrypted
    use_ssl = Column(Boolean, default=False, nullable=False)
    domain = Column(String(255), nullable=True)
    path = Column(String(1000), nullable=True)

    storage = relationship("Storage", back_populates="nas_storage")

    plain_fields = ("host", "port", "share", "username", "use_ssl", "domain", "path")
    sensitive_fields = ("password",)

    def validate(self, encryptor) -> None:
        self._require(
            host=self.host,
            share=self.share,
            username=self.username,
            password=self.password,
        )
        self._check_port(self.port)

    def __repr__(self):
        return f"<NASStorage(storage_id={self.storage_id}, host={self.host}, share={self.share})>"
