"""SQLAlchemy model for push delivery device tokens."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from vitrix.infrastructure.database import Base
from vitrix.utils import now_in_app_timezone


class DeviceTokenModel(Base):
    """Database representation of an installed app instance."""

    __tablename__ = "device_token"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(String(512), nullable=False, unique=True, index=True)
    platform = Column(String(20), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=now_in_app_timezone
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=True, onupdate=now_in_app_timezone
    )

    user = relationship("UserModel", back_populates="device_tokens")


__all__ = ["DeviceTokenModel"]
