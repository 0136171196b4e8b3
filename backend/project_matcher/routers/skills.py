"""Public skill catalogue."""

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas, services
from ..database import get_session

router = APIRouter(prefix="/skills", tags=["Skills"])


@router.get("", response_model=List[schemas.SkillOut])
def list_skills(db: Session = Depends(get_session)):
    return [schemas.SkillOut.model_validate(s) for s in services.SkillService(db).find_all()]
