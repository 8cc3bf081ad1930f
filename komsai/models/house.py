from sqlmodel import Field, SQLModel


class House(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    description: str = ""
    total_points: int = 0  # running sum of ScoreAction.points for this house
