"""Endpoint the mobile app uses to register its push token."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vitrix.application.use_cases.device_tokens import register_device_token
from vitrix.infrastructure.database import get_db
from vitrix.interfaces.api.routes_helpers import domain_error_to_http
from vitrix.interfaces.api.schemas import DeviceTokenRead, DeviceTokenRegister

router = APIRouter(prefix="/device-tokens", tags=["device-tokens"])


@router.post("", response_model=DeviceTokenRead)
def register_token(
    payload: DeviceTokenRegister,
    db: Session = Depends(get_db),
) -> DeviceTokenRead:
    try:
        device_token = register_device_token(
            db,
            token=payload.token,
            user_id=payload.user_id,
            email=str(payload.email) if payload.email else None,
            platform=payload.platform,
        )
    except ValueError as exc:
        raise domain_error_to_http(exc) from exc
    return DeviceTokenRead.model_validate(device_token)
