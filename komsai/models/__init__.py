from .house import House
from .operator import Operator
from .push_subscription import PushSubscription
from .score import ScoreAction

__all__ = [
    "House",
    "Operator",
    "PushSubscription",
    "ScoreAction",
]
