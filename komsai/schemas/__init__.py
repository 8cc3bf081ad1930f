from .auth import OperatorCreate, OperatorLogin, OperatorResponse, Token
from .push import (
    ComposePreview,
    ComposeRequest,
    NotificationPayload,
    SubscriptionIn,
    SubscriptionKeys,
    SubscriptionOut,
    SubscriptionPageOut,
)
from .scores import ActionPageOut, DayBreakdown, HouseCreate, HouseOut, ScoreActionOut, ScoreCreate

__all__ = [
    "ActionPageOut",
    "ComposePreview",
    "ComposeRequest",
    "DayBreakdown",
    "HouseCreate",
    "HouseOut",
    "NotificationPayload",
    "OperatorCreate",
    "OperatorLogin",
    "OperatorResponse",
    "ScoreActionOut",
    "ScoreCreate",
    "SubscriptionIn",
    "SubscriptionKeys",
    "SubscriptionOut",
    "SubscriptionPageOut",
    "Token",
]
