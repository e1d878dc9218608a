## Current student dependency
# Authentication happens upstream; the gateway forwards the verified user id.
import uuid

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from flightdeck.deps import get_db
from flightdeck.db.models.user import User

USER_ID_HEADER = "X-User-Id"


class NotAuthenticated(Exception):
    pass


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    raw = request.headers.get(USER_ID_HEADER)
    if not raw:
        raise NotAuthenticated()

    try:
        user_id = uuid.UUID(raw)
    except ValueError:
        raise NotAuthenticated()

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise NotAuthenticated()
    return user
