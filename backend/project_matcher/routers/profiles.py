"""Profile endpoints for the authenticated user."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, schemas, services
from ..auth import get_current_user
from ..database import get_session

router = APIRouter(prefix="/profiles/me", tags=["Profiles"])


@router.get("", response_model=schemas.ProfileOut)
def read_my_profile(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    profile = services.ProfileService(db).get_for_user(user.id)
    return schemas.ProfileOut.model_validate(profile)


@router.patch("", response_model=schemas.ProfileOut)
def update_my_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Partially update the profile.

    `first_name` / `last_name` are written to the user record. `skills`
    and `interests` take lists of names and replace the current set.
    """
    profile = services.ProfileService(db).update(user, payload)
    return schemas.ProfileOut.model_validate(profile)


@router.post("/complete-signup", response_model=schemas.ProfileOut)
def complete_signup(
    payload: schemas.CompleteSignupIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Store the onboarding answers collected right after sign-up."""
    profile = services.ProfileService(db).complete_signup(user, payload)
    return schemas.ProfileOut.model_validate(profile)
