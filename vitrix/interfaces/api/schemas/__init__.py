from .device_token import DeviceTokenRead, DeviceTokenRegister
from .group_message import (
    BroadcastRead,
    DeliveryStatusRead,
    GroupMessageCreate,
    GroupMessageRead,
    ReadReceiptRead,
    ReadStatsRead,
)
from .notification import (
    AllTarget,
    DeliveryReportRead,
    GroupTarget,
    IndividualTarget,
    NotificationOpenRequest,
    NotificationOpenResponse,
    NotifyRequest,
)

__all__ = [
    "AllTarget",
    "BroadcastRead",
    "DeliveryReportRead",
    "DeliveryStatusRead",
    "DeviceTokenRead",
    "DeviceTokenRegister",
    "GroupMessageCreate",
    "GroupMessageRead",
    "GroupTarget",
    "IndividualTarget",
    "NotificationOpenRequest",
    "NotificationOpenResponse",
    "NotifyRequest",
    "ReadReceiptRead",
    "ReadStatsRead",
]
