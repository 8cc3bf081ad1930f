from .lifecycle import (
    LOADING,
    DeviceSubscription,
    PushPlatform,
    ResyncStatus,
    Status,
    SubscriptionLifecycle,
    SubscriptionStoreClient,
    url_base64_to_bytes,
)
from .store import HttpSubscriptionStore

__all__ = [
    "LOADING",
    "DeviceSubscription",
    "HttpSubscriptionStore",
    "PushPlatform",
    "ResyncStatus",
    "Status",
    "SubscriptionLifecycle",
    "SubscriptionStoreClient",
    "url_base64_to_bytes",
]
