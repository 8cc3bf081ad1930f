"""Web Push subscriptions, one row per browser push endpoint."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class PushSubscription(SQLModel, table=True):
    __tablename__ = "push_subscriptions"
    id: int | None = Field(default=None, primary_key=True)
    endpoint: str = Field(unique=True, index=True)  # natural key; upsert never duplicates it
    p256dh: str  # client public key (base64url)
    auth: str    # auth secret (base64url)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def subscription_info(self) -> dict:
        """Shape expected by pywebpush and by the browser's PushSubscription.toJSON()."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
