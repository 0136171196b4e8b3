"""Project endpoints, including membership management and invitations.

- POST /projects, GET /projects, GET /projects/me, GET /projects/{id}
- PATCH /projects/{id}, DELETE /projects/{id}
- POST /projects/{id}/members, PATCH|DELETE /projects/{id}/members/{user_id}
- POST /projects/{id}/invite
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/projects", tags=["Projects"])


def _out(project: models.Project) -> schemas.ProjectOut:
    return schemas.ProjectOut.model_validate(project)


@router.post("", response_model=schemas.ProjectOut, status_code=201)
def create_project(
    payload: schemas.ProjectCreate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Create a project owned by the caller, optionally with initial milestones."""
    return _out(services.ProjectService(db).create(user, payload))


@router.get("", response_model=schemas.ProjectList)
def list_projects(
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    owner_id: Optional[uuid.UUID] = None,
    member_id: Optional[uuid.UUID] = None,
    skill: Optional[str] = Query(None, max_length=100),
    tag: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_session),
):
    """Public, paginated project search (newest first).

    `search` matches title or description; `skill` / `tag` match one element
    of the project's list, case-insensitively.
    """
    projects, total = services.ProjectService(db).find_all(
        skip=skip, take=take, search=search, owner_id=owner_id, member_id=member_id, skill=skill, tag=tag
    )
    return schemas.ProjectList(projects=[_out(p) for p in projects], total=total)


@router.get("/me", response_model=List[schemas.ProjectOut])
def list_my_projects(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Projects the caller belongs to, with milestones and tasks."""
    return [_out(p) for p in services.ProjectService(db).find_for_member(user)]


@router.get("/{project_id}", response_model=schemas.ProjectOut)
def get_project(project_id: uuid.UUID, db: Session = Depends(get_session)):
    return _out(services.ProjectService(db).find_one(project_id))


@router.patch("/{project_id}", response_model=schemas.ProjectOut)
def update_project(
    project_id: uuid.UUID,
    payload: schemas.ProjectUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return _out(services.ProjectService(db).update(project_id, user, payload))


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.ProjectService(db).remove(project_id, user)


@router.post("/{project_id}/members", response_model=schemas.MemberOut, status_code=201)
def add_member(
    project_id: uuid.UUID,
    payload: schemas.AddMemberIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    membership = services.ProjectService(db).add_member(project_id, user, payload)
    return schemas.MemberOut.model_validate(membership)


@router.post("/{project_id}/invite", response_model=schemas.ApplicationOut, status_code=201)
def invite_user(
    project_id: uuid.UUID,
    payload: schemas.InviteUserIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Invite a user; creates an application with status Invited."""
    application = services.ApplicationService(db).invite(project_id, user, payload)
    return schemas.ApplicationOut.model_validate(application)


@router.patch("/{project_id}/members/{member_user_id}", response_model=schemas.MemberOut)
def update_member_role(
    project_id: uuid.UUID,
    member_user_id: uuid.UUID,
    payload: schemas.UpdateMemberRoleIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    membership = services.ProjectService(db).update_member_role(project_id, member_user_id, user, payload.role)
    return schemas.MemberOut.model_validate(membership)


@router.delete("/{project_id}/members/{member_user_id}", status_code=204)
def remove_member(
    project_id: uuid.UUID,
    member_user_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Remove a member; the owner may remove anyone, members only themselves."""
    services.ProjectService(db).remove_member(project_id, member_user_id, user)
