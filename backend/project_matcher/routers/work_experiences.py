"""Work experience entries on the authenticated user's profile."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/profiles/me/work-experiences", tags=["Work Experiences"])


@router.get("", response_model=List[schemas.WorkExperienceOut])
def list_work_experiences(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    items = services.WorkExperienceService(db).find_all(user)
    return [schemas.WorkExperienceOut.model_validate(i) for i in items]


@router.post("", response_model=schemas.WorkExperienceOut, status_code=201)
def create_work_experience(
    payload: schemas.WorkExperienceIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    item = services.WorkExperienceService(db).create(user, payload)
    return schemas.WorkExperienceOut.model_validate(item)


@router.patch("/{experience_id}", response_model=schemas.WorkExperienceOut)
def update_work_experience(
    experience_id: uuid.UUID,
    payload: schemas.WorkExperienceUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    item = services.WorkExperienceService(db).update(user, experience_id, payload)
    return schemas.WorkExperienceOut.model_validate(item)


@router.delete("/{experience_id}", status_code=204)
def delete_work_experience(
    experience_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.WorkExperienceService(db).remove(user, experience_id)
