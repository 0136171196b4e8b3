"""Public interest catalogue."""

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas, services
from ..database import get_session

router = APIRouter(prefix="/interests", tags=["Interests"])


@router.get("", response_model=List[schemas.InterestOut])
def list_interests(db: Session = Depends(get_session)):
    return [schemas.InterestOut.model_validate(i) for i in services.InterestService(db).find_all()]
