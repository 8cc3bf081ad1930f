from typing import Literal

from pydantic import BaseModel, Field

Tag = Literal["reminders", "results"]
TemplateKind = Literal["custom", "standings", "event-result"]
Place = Literal["1st", "2nd", "3rd", "4th"]


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class SubscriptionIn(BaseModel):
    """Body of the browser's PushSubscription.toJSON()."""
    endpoint: str = Field(min_length=1)
    keys: SubscriptionKeys


class SubscriptionOut(BaseModel):
    id: int
    endpoint: str
    keys: SubscriptionKeys


class SubscriptionPageOut(BaseModel):
    items: list[SubscriptionOut]
    next_cursor: str | None
    is_done: bool


class NotificationPayload(BaseModel):
    title: str
    body: str
    tag: Tag = "reminders"


class ComposeRequest(BaseModel):
    """Template fields; which of them matter depends on `kind`."""
    kind: TemplateKind
    # custom
    title: str = ""
    body: str = ""
    tag: Tag = "reminders"
    # standings
    note: str = ""
    # event-result
    house_id: int | None = None
    event: str = ""
    place: Place | Literal[""] = ""
    day: int | None = None


class ComposePreview(BaseModel):
    payload: NotificationPayload
    sendable: bool
