import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from komsai.api.deps import get_current_operator
from komsai.core.config import get_operator_emails
from komsai.core.database import get_db
from komsai.core.rate_limit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from komsai.core.security import create_operator_token, hash_password, verify_password
from komsai.models import Operator
from komsai.schemas import OperatorCreate, OperatorLogin, OperatorResponse, Token

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _operator_response(operator: Operator) -> OperatorResponse:
    return OperatorResponse(id=operator.id, email=operator.email, full_name=operator.full_name or "")


@router.post("/register", response_model=OperatorResponse)
@limiter.limit(REGISTER_LIMIT)
def register(request: Request, body: OperatorCreate, db: Session = Depends(get_db)):
    """Operator sign-up; only emails on OPERATOR_EMAILS may register."""
    email = body.email.strip().lower()
    if email not in get_operator_emails():
        log.warning("operator sign-up refused email=%s", email)
        raise HTTPException(status_code=403, detail="Sign-up is restricted to approved operator emails.")
    if db.exec(select(Operator).where(Operator.email == email)).first():
        raise HTTPException(status_code=400, detail="This email is already registered.")
    operator = Operator(
        email=email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name.strip(),
    )
    db.add(operator)
    db.commit()
    db.refresh(operator)
    log.info("operator registered id=%s", operator.id)
    return _operator_response(operator)


@router.post("/login", response_model=Token)
@limiter.limit(LOGIN_LIMIT)
def login(request: Request, body: OperatorLogin, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    operator = db.exec(select(Operator).where(Operator.email == email)).first()
    if not operator or not verify_password(body.password, operator.hashed_password):
        raise HTTPException(status_code=401, detail="Wrong email or password.")
    operator.last_login_at = datetime.utcnow()
    db.add(operator)
    db.commit()
    return Token(access_token=create_operator_token(operator.id, operator.email))


@router.get("/me", response_model=OperatorResponse)
def me(operator: Operator = Depends(get_current_operator)):
    return _operator_response(operator)
