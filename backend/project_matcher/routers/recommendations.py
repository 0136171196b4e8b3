"""AI project recommendations for the authenticated user."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from .. import llm, models, schemas, services
from ..auth import get_current_user
from ..config import settings
from ..database import get_session
from ..utils.rate_limit import InMemoryRateLimiter

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])
rate_limiter = InMemoryRateLimiter()


def _enforce_rate_limit(user: models.User) -> None:
    allowed, retry_after = rate_limiter.allow(
        f"recommendations:{user.id}",
        settings.RECOMMENDATION_RATE_LIMIT_PER_MIN,
        settings.RECOMMENDATION_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"rate limit exceeded; retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )


@router.get("/projects", response_model=List[schemas.RecommendationOut])
def recommend_projects(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return up to five projects the LLM considers a good match, with short reasons.

    Returns an empty list when the LLM is not configured, the user has no
    profile or there is nothing to recommend.
    """
    _enforce_rate_limit(user)
    svc = services.RecommendationService(db, llm.get_client())
    return [
        schemas.RecommendationOut(
            project=schemas.ProjectWithOwner.model_validate(item["project"]),
            reasons=item["reasons"],
        )
        for item in svc.recommend(user)
    ]
