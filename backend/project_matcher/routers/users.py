"""User endpoints.

- GET /users
- POST /users/sync
- GET /users/me
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user, require_sync_key
from ..database import get_session

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[schemas.UserSummary])
def list_users(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """List every user with just enough detail to pick one (invites, assignments)."""
    return [schemas.UserSummary.model_validate(u) for u in services.UserService(db).list_users()]


@router.post("/sync", response_model=schemas.UserOut, dependencies=[Depends(require_sync_key)])
def sync_user(payload: schemas.UserSyncIn, db: Session = Depends(get_session)):
    """Create or update a user from the identity provider (post-confirmation hook).

    Public unless `SYNC_API_KEY` is configured, in which case the caller
    must send it in the `X-Sync-Key` header.
    """
    user = services.UserService(db).sync(payload)
    return schemas.UserOut.model_validate(user)


@router.get("/me", response_model=schemas.UserOut)
def read_me(user: models.User = Depends(get_current_user)):
    """Return the authenticated user with the full profile."""
    return schemas.UserOut.model_validate(user)
