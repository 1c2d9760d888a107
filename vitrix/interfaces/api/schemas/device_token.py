"""Device token schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class DeviceTokenRegister(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1)
    email: EmailStr | None = None
    user_id: int | None = Field(default=None, alias="userId")
    platform: str | None = None


class DeviceTokenRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    token: str
    platform: str | None
    active: bool
    created_at: datetime | None
    updated_at: datetime | None
