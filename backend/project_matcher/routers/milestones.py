"""Milestone endpoints nested under a project. Callers must belong to the project."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/projects/{project_id}/milestones", tags=["Milestones"])


@router.get("", response_model=List[schemas.MilestoneOut])
def list_milestones(
    project_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List the project's milestones by date, each with its tasks."""
    items = services.MilestoneService(db).find_all(project_id, user)
    return [schemas.MilestoneOut.model_validate(m) for m in items]


@router.post("", response_model=schemas.MilestoneOut, status_code=201)
def create_milestone(
    project_id: uuid.UUID,
    payload: schemas.MilestoneIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    milestone = services.MilestoneService(db).create(project_id, user, payload)
    return schemas.MilestoneOut.model_validate(milestone)


@router.get("/{milestone_id}", response_model=schemas.MilestoneOut)
def get_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    milestone = services.MilestoneService(db).find_one(project_id, milestone_id, user)
    return schemas.MilestoneOut.model_validate(milestone)


@router.patch("/{milestone_id}", response_model=schemas.MilestoneOut)
def update_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    payload: schemas.MilestoneUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    milestone = services.MilestoneService(db).update(project_id, milestone_id, user, payload)
    return schemas.MilestoneOut.model_validate(milestone)


@router.patch("/{milestone_id}/activate", response_model=schemas.MilestoneOut)
def activate_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Make this the project's only active milestone."""
    milestone = services.MilestoneService(db).activate(project_id, milestone_id, user)
    return schemas.MilestoneOut.model_validate(milestone)


@router.delete("/{milestone_id}", status_code=204)
def delete_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.MilestoneService(db).remove(project_id, milestone_id, user)
