"""Public standings and the operator's score entry."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from komsai.api.deps import get_current_operator
from komsai.core.config import settings
from komsai.core.database import get_db
from komsai.models import House, Operator, ScoreAction
from komsai.schemas import ActionPageOut, DayBreakdown, HouseCreate, HouseOut, ScoreActionOut, ScoreCreate
from komsai.services import scoring

router = APIRouter(tags=["leaderboard"])


def _house_out(house: House) -> HouseOut:
    return HouseOut(id=house.id, name=house.name, description=house.description, total_points=house.total_points)


def _action_out(action: ScoreAction) -> ScoreActionOut:
    return ScoreActionOut.model_validate(action, from_attributes=True)


@router.get("/leaderboard", response_model=list[HouseOut])
def leaderboard(db: Session = Depends(get_db)):
    return [_house_out(h) for h in scoring.get_leaderboard(db)]


@router.get("/breakdown", response_model=DayBreakdown)
def breakdown(day: int = Query(1, ge=1), db: Session = Depends(get_db)):
    if day > settings.max_day:
        raise HTTPException(status_code=422, detail=f"Day must be between 1 and {settings.max_day}.")
    return scoring.day_breakdown(db, day)


@router.get("/houses/{house_id}/actions", response_model=ActionPageOut)
def house_actions(
    house_id: int,
    cursor: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    if db.get(House, house_id) is None:
        raise HTTPException(status_code=404, detail="House not found.")
    try:
        items, next_cursor, is_done = scoring.actions_page(db, house_id, cursor, limit)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid cursor.")
    return ActionPageOut(items=[_action_out(a) for a in items], next_cursor=next_cursor, is_done=is_done)


@router.post("/houses", response_model=HouseOut, status_code=201)
def create_house(
    body: HouseCreate,
    _: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
):
    try:
        house = scoring.create_house(db, body.name, body.description)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="A house with this name already exists.")
    return _house_out(house)


@router.post("/scores", response_model=ScoreActionOut, status_code=201)
def add_score(
    body: ScoreCreate,
    operator: Operator = Depends(get_current_operator),
    db: Session = Depends(get_db),
):
    if body.day > settings.max_day:
        raise HTTPException(status_code=422, detail=f"Day must be between 1 and {settings.max_day}.")
    try:
        action = scoring.add_score(
            db,
            house_id=body.house_id,
            recorded_by=operator.full_name or operator.email,
            place=body.place,
            event=body.event,
            points=body.points,
            day=body.day,
        )
    except scoring.UnknownHouse:
        raise HTTPException(status_code=404, detail="House not found.")
    return _action_out(action)
