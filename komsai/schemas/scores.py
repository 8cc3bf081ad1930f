from datetime import datetime

from pydantic import BaseModel, Field

from .push import Place


class HouseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=60)
    description: str = ""


class HouseOut(BaseModel):
    id: int
    name: str
    description: str
    total_points: int


class ScoreCreate(BaseModel):
    house_id: int
    place: Place
    event: str = Field(min_length=1)
    points: int
    day: int = Field(ge=1)


class ScoreActionOut(BaseModel):
    id: int
    house_id: int
    recorded_by: str
    place: str
    event: str
    points: int
    day: int
    created_at: datetime


class ActionPageOut(BaseModel):
    items: list[ScoreActionOut]
    next_cursor: str | None
    is_done: bool


class DayBreakdown(BaseModel):
    day: int
    events: dict[str, dict[int, int]]  # event -> house_id -> points
    totals: dict[int, int]  # house_id -> points for the day
