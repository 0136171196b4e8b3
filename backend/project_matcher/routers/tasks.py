"""Task endpoints nested under a project milestone."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/projects/{project_id}/milestones/{milestone_id}/tasks", tags=["Tasks"])


@router.get("", response_model=List[schemas.TaskOut])
def list_tasks(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    items = services.TaskService(db).find_all(project_id, milestone_id, user)
    return [schemas.TaskOut.model_validate(t) for t in items]


@router.post("", response_model=schemas.TaskOut, status_code=201)
def create_task(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    payload: schemas.TaskIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    task = services.TaskService(db).create(project_id, milestone_id, user, payload)
    return schemas.TaskOut.model_validate(task)


@router.get("/{task_id}", response_model=schemas.TaskOut)
def get_task(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    task_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    task = services.TaskService(db).find_one(project_id, milestone_id, task_id, user)
    return schemas.TaskOut.model_validate(task)


@router.patch("/{task_id}", response_model=schemas.TaskOut)
def update_task(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: schemas.TaskUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    task = services.TaskService(db).update(project_id, milestone_id, task_id, user, payload)
    return schemas.TaskOut.model_validate(task)


@router.patch("/{task_id}/assign", response_model=schemas.TaskOut)
def assign_task(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: schemas.TaskAssign,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Assign to a project member, or send `assignee_id: null` to unassign."""
    task = services.TaskService(db).assign(project_id, milestone_id, task_id, user, payload.assignee_id)
    return schemas.TaskOut.model_validate(task)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    task_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.TaskService(db).remove(project_id, milestone_id, task_id, user)
