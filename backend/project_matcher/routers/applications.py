"""Application and invitation endpoints.

- POST /applications/apply/{project_id}
- GET /applications
- GET /applications/{id}
- PATCH /applications/{id}/status

Invitations are created through POST /projects/{id}/invite.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("/apply/{project_id}", response_model=schemas.ApplicationOut, status_code=201)
def apply_to_project(
    project_id: uuid.UUID,
    payload: schemas.ApplicationCreate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    application = services.ApplicationService(db).apply(project_id, user, payload)
    return schemas.ApplicationOut.model_validate(application)


@router.get("", response_model=schemas.ApplicationList)
def list_applications(
    project_id: Optional[uuid.UUID] = None,
    applicant_id: Optional[str] = None,
    status: Optional[models.ApplicationStatus] = None,
    filter_type: Optional[Literal["sent", "received"]] = Query(None, alias="filter"),
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List applications through one view.

    - `filter=sent`: the caller's pending applications
    - `filter=received`: invitations to the caller and pending applications
      to the caller's projects
    - `applicant_id=me`: the caller's own applications
    - `project_id`: pending applications to a project the caller owns
    """
    items, total = services.ApplicationService(db).find_all(
        user,
        project_id=project_id,
        applicant_id=applicant_id,
        status=status,
        filter_type=filter_type,
        skip=skip,
        take=take,
    )
    return schemas.ApplicationList(
        applications=[schemas.ApplicationOut.model_validate(a) for a in items], total=total
    )


@router.get("/{application_id}", response_model=schemas.ApplicationOut)
def get_application(
    application_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    application = services.ApplicationService(db).find_one(application_id, user)
    return schemas.ApplicationOut.model_validate(application)


@router.patch("/{application_id}/status", response_model=schemas.ApplicationOut)
def update_application_status(
    application_id: uuid.UUID,
    payload: schemas.ApplicationStatusUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Accept or decline an application (owner) or an invitation (invitee)."""
    application = services.ApplicationService(db).update_status(application_id, user, payload.status)
    return schemas.ApplicationOut.model_validate(application)
