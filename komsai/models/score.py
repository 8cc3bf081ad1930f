from datetime import datetime

from sqlmodel import Field, SQLModel


class ScoreAction(SQLModel, table=True):
    __tablename__ = "score_actions"
    id: int | None = Field(default=None, primary_key=True)
    house_id: int = Field(foreign_key="house.id", index=True)
    recorded_by: str  # operator who entered the score
    place: str  # "1st" | "2nd" | "3rd" | "4th"
    event: str = Field(index=True)
    points: int
    day: int = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
