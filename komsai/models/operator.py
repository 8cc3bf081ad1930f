from datetime import datetime

from sqlmodel import Field, SQLModel


class Operator(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    hashed_password: str
    full_name: str = ""
    created_at: datetime | None = Field(default_factory=datetime.utcnow)
    last_login_at: datetime | None = None
