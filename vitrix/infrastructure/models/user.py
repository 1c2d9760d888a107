"""SQLAlchemy model for the user table."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from vitrix.infrastructure.database import Base


class UserModel(Base):
    """Database representation of a trainee or staff account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), nullable=False, unique=True, index=True)
    name = Column(String(120), nullable=False, default="")
    role = Column(String(30), nullable=False, default="trainee")
    group_names = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    device_tokens = relationship(
        "DeviceTokenModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


__all__ = ["UserModel"]
