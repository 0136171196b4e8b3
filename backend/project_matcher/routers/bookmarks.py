"""Bookmarks of the authenticated user."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/users/me/bookmarks", tags=["Bookmarks"])


@router.get("", response_model=List[schemas.BookmarkOut])
def list_bookmarks(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return [schemas.BookmarkOut.model_validate(b) for b in services.BookmarkService(db).find_all(user)]


@router.post("/project/{project_id}", response_model=schemas.BookmarkOut, status_code=201)
def add_bookmark(
    project_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Bookmark a project; repeating the call returns the existing bookmark."""
    bookmark = services.BookmarkService(db).add(user, project_id)
    return schemas.BookmarkOut.model_validate(bookmark)


@router.delete("/project/{project_id}", status_code=204)
def remove_bookmark(
    project_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.BookmarkService(db).remove(user, project_id)
