"""Portfolio showcase entries on the authenticated user's profile."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/profiles/me/portfolio-projects", tags=["Portfolio Projects"])


@router.get("", response_model=List[schemas.PortfolioProjectOut])
def list_portfolio_projects(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """List the user's portfolio, newest first."""
    items = services.PortfolioProjectService(db).find_all(user)
    return [schemas.PortfolioProjectOut.model_validate(i) for i in items]


@router.post("", response_model=schemas.PortfolioProjectOut, status_code=201)
def create_portfolio_project(
    payload: schemas.PortfolioProjectIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    item = services.PortfolioProjectService(db).create(user, payload)
    return schemas.PortfolioProjectOut.model_validate(item)


@router.patch("/{item_id}", response_model=schemas.PortfolioProjectOut)
def update_portfolio_project(
    item_id: uuid.UUID,
    payload: schemas.PortfolioProjectUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    item = services.PortfolioProjectService(db).update(user, item_id, payload)
    return schemas.PortfolioProjectOut.model_validate(item)


@router.delete("/{item_id}", status_code=204)
def delete_portfolio_project(
    item_id: uuid.UUID,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    services.PortfolioProjectService(db).remove(user, item_id)
