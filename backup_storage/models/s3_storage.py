"""S3-compatible storage model."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from backup_storage.database import Base
from backup_storage.models.variant import StorageVariantMixin


class S3Storage(StorageVariantMixin, Base):
    """S3 bucket settings (AWS S3, Cloudflare R2, MinIO, etc)."""

    __tablename__ = "s3_storages"

    storage_id = Column(Uuid(as_uuid=True), ForeignKey("storages.id", ondelete="CASCADE"), primary_key=True)
    s3_bucket = Column(String(255), nullable=False)
    s3_region = Column(String(100), nullable=True)
    s3_access_key = Column(Text, nullable=False)  # encrypted
    s3_secret_key = Column(Text, nullable=False)  # encrypted
    s3_endpoint = Column(String(500), nullable=True)
    s3_prefix = Column(String(500), nullable=True)
    s3_use_virtual_hosted_style = Column(Boolean, default=False, nullable=False)

    storage = relationship("Storage", back_populates="s3_storage")

    plain_fields = ("s3_bucket", "s3_region", "s3_endpoint", "s3_prefix", "s3_use_virtual_hosted_style")
    sensitive_fields = ("s3_access_key", "s3_secret_key")

    def validate(self, encryptor) -> None:
        self._require(
            s3_bucket=self.s3_bucket,
            s3_access_key=self.s3_access_key,
            s3_secret_key=self.s3_secret_key,
        )

    def __repr__(self):
        return f"<S3Storage(storage_id={self.storage_id}, bucket={self.s3_bucket})>"
