from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from komsai.core.database import get_db
from komsai.core.security import decode_operator_token
from komsai.models import Operator
from komsai.services.push import PushDispatcher

security = HTTPBearer(auto_error=False)


def get_current_operator_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Operator sign-in required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    operator_id = decode_operator_token(credentials.credentials)
    if operator_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return operator_id


def get_current_operator(
    operator_id: int = Depends(get_current_operator_id),
    db: Session = Depends(get_db),
) -> Operator:
    operator = db.get(Operator, operator_id)
    if not operator:
        # Token outlived its account
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Operator not found.")
    return operator


def get_dispatcher(request: Request) -> PushDispatcher:
    return request.app.state.dispatcher
