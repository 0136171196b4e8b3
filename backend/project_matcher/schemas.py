"""Pydantic request/response schemas used by the API.

Request schemas carry the validation rules (lengths, URLs, non-empty
lists); response schemas are read straight from ORM objects
(`from_attributes`) and decode the comma-joined list columns.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AliasChoices, AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from .models import ApplicationStatus, ProjectRole, TaskStatus, split_list

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read timezone-less datetimes (and bare `YYYY-MM-DD` dates) as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _decode_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return split_list(value)
    return value


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- users -----------------------------------------------------------------

class UserSyncIn(BaseModel):
    """Payload sent by the identity provider hook after sign-up or sign-in."""
    cognito_sub: NonEmptyStr
    email: EmailStr
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    preferred_username: NonEmptyStr


class UserSummary(ORMModel):
    id: uuid.UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_username: Optional[str] = None


class UserPublic(UserSummary):
    """User details safe to embed in project, task and application payloads."""
    email: str
    created_at: datetime
    updated_at: datetime


# --- skills / interests ----------------------------------------------------

class SkillOut(ORMModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None


class InterestOut(ORMModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None


class TagIn(BaseModel):
    """Create/update payload shared by skills and interests."""
    name: NonEmptyStr = Field(max_length=100)
    description: Optional[str] = None


# --- work experiences ------------------------------------------------------

class WorkExperienceIn(BaseModel):
    date_range: NonEmptyStr = Field(max_length=100)
    work_name: NonEmptyStr = Field(max_length=255)
    description: NonEmptyStr


class WorkExperienceUpdate(BaseModel):
    date_range: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    work_name: Optional[NonEmptyStr] = Field(default=None, max_length=255)
    description: Optional[NonEmptyStr] = None


class WorkExperienceOut(ORMModel):
    id: uuid.UUID
    profile_id: uuid.UUID
    date_range: str
    work_name: str
    description: str


# --- portfolio projects ----------------------------------------------------

class PortfolioProjectIn(BaseModel):
    title: NonEmptyStr = Field(max_length=255)
    description: NonEmptyStr
    tags: List[NonEmptyStr] = Field(default_factory=list)
    image_url: Optional[AnyHttpUrl] = None


class PortfolioProjectUpdate(BaseModel):
    title: Optional[NonEmptyStr] = Field(default=None, max_length=255)
    description: Optional[NonEmptyStr] = None
    tags: Optional[List[NonEmptyStr]] = None
    image_url: Optional[AnyHttpUrl] = None


class PortfolioProjectOut(ORMModel):
    id: uuid.UUID
    profile_id: uuid.UUID
    title: str
    description: str
    tags: List[str] = []
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _decode_list(v)


# --- profiles --------------------------------------------------------------

class ProfileOut(ORMModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_type: Optional[str] = None
    program: Optional[str] = None
    signup_experience: Optional[str] = None
    status: Optional[str] = None
    institution: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    updated_at: datetime
    skills: List[SkillOut] = []
    interests: List[InterestOut] = []
    work_experiences: List[WorkExperienceOut] = []
    portfolio_projects: List[PortfolioProjectOut] = []


class UserOut(UserPublic):
    cognito_sub: str
    profile: Optional[ProfileOut] = None


class ProfileUpdate(BaseModel):
    """Partial profile update.

    `skills` / `interests` replace the whole set when present; an empty list
    clears it and omitting the key leaves it untouched.
    """
    first_name: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    last_name: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    user_type: Optional[str] = Field(default=None, max_length=100)
    program: Optional[str] = Field(default=None, max_length=255)
    signup_experience: Optional[str] = Field(default=None, max_length=500)
    status: Optional[str] = Field(default=None, max_length=100)
    institution: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=1000)
    avatar_url: Optional[AnyHttpUrl] = None
    banner_url: Optional[AnyHttpUrl] = None
    skills: Optional[List[NonEmptyStr]] = None
    interests: Optional[List[NonEmptyStr]] = None


class CompleteSignupIn(BaseModel):
    user_type: NonEmptyStr = Field(max_length=100)
    program: NonEmptyStr = Field(max_length=255)
    signup_experience: Optional[str] = Field(default=None, max_length=500)
    skills: List[NonEmptyStr] = Field(min_length=1)
    interests: List[NonEmptyStr] = Field(min_length=1)


# --- milestones / tasks ----------------------------------------------------

class TaskIn(BaseModel):
    name: NonEmptyStr = Field(max_length=255)
    description: NonEmptyStr
    status: TaskStatus = TaskStatus.TO_DO
    assignee_id: Optional[uuid.UUID] = None


class TaskUpdate(BaseModel):
    name: Optional[NonEmptyStr] = Field(default=None, max_length=255)
    description: Optional[NonEmptyStr] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[uuid.UUID] = None


class TaskAssign(BaseModel):
    assignee_id: Optional[uuid.UUID] = None


class TaskOut(ORMModel):
    id: uuid.UUID
    milestone_id: uuid.UUID
    assignee_id: Optional[uuid.UUID] = None
    assignee: Optional[UserPublic] = None
    name: str
    description: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime


class MilestoneSeed(BaseModel):
    """Milestone supplied inline when a project is created."""
    title: NonEmptyStr = Field(max_length=255)
    date: datetime

    @field_validator("date")
    @classmethod
    def date_as_utc(cls, v):
        return _as_utc(v)


class MilestoneIn(MilestoneSeed):
    active: bool = False


class MilestoneUpdate(BaseModel):
    title: Optional[NonEmptyStr] = Field(default=None, max_length=255)
    date: Optional[datetime] = None
    active: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def date_as_utc(cls, v):
        return _as_utc(v)


class MilestoneOut(ORMModel):
    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    date: datetime
    active: bool
    created_at: datetime
    tasks: List[TaskOut] = []


# --- projects --------------------------------------------------------------

class ProjectBase(BaseModel):
    num_of_members: Optional[str] = Field(default=None, max_length=50)
    project_type: Optional[str] = Field(default=None, max_length=100)
    mentor_request: Optional[str] = Field(default=None, max_length=100)
    preferred_mentor: Optional[str] = Field(default=None, max_length=100)
    required_roles: Optional[str] = None
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_as_utc(cls, v):
        return _as_utc(v)


class ProjectCreate(ProjectBase):
    title: NonEmptyStr = Field(max_length=255)
    description: NonEmptyStr
    required_skills: List[NonEmptyStr] = Field(default_factory=list)
    tags: List[NonEmptyStr] = Field(default_factory=list)
    milestones: List[MilestoneSeed] = Field(default_factory=list)


class ProjectUpdate(ProjectBase):
    title: Optional[NonEmptyStr] = Field(default=None, max_length=255)
    description: Optional[NonEmptyStr] = None
    required_skills: Optional[List[NonEmptyStr]] = None
    tags: Optional[List[NonEmptyStr]] = None


class ProjectSummary(ORMModel):
    """Project fields without the nested owner/members/milestones graph."""
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    num_of_members: Optional[str] = None
    project_type: Optional[str] = None
    mentor_request: Optional[str] = None
    preferred_mentor: Optional[str] = None
    required_skills: List[str] = []
    tags: List[str] = []
    required_roles: Optional[str] = None
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("required_skills", "tags", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _decode_list(v)


class ProjectWithOwner(ProjectSummary):
    owner: Optional[UserPublic] = None


class MemberOut(ORMModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    role: ProjectRole
    user: Optional[UserPublic] = None
    joined_at: datetime


class ProjectOut(ProjectWithOwner):
    members: List[MemberOut] = Field(default_factory=list, validation_alias=AliasChoices("members", "memberships"))
    milestones: List[MilestoneOut] = []


class ProjectList(BaseModel):
    projects: List[ProjectOut]
    total: int


class AddMemberIn(BaseModel):
    user_id: uuid.UUID
    role: ProjectRole


class UpdateMemberRoleIn(BaseModel):
    role: ProjectRole


class InviteUserIn(BaseModel):
    user_id: uuid.UUID
    role: Optional[NonEmptyStr] = Field(default=None, max_length=100)


# --- applications ----------------------------------------------------------

class ApplicationCreate(BaseModel):
    role_applied_for: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    message: Optional[str] = Field(default=None, max_length=2000)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus

    @field_validator("status")
    @classmethod
    def only_final_status(cls, v: ApplicationStatus) -> ApplicationStatus:
        if v not in (ApplicationStatus.ACCEPTED, ApplicationStatus.DECLINED):
            raise ValueError("status must be Accepted or Declined")
        return v


class ApplicationOut(ORMModel):
    id: uuid.UUID
    applicant_id: uuid.UUID
    project_id: uuid.UUID
    status: ApplicationStatus
    role_applied_for: Optional[str] = None
    message: Optional[str] = None
    applicant: Optional[UserPublic] = None
    project: Optional[ProjectWithOwner] = None
    created_at: datetime
    updated_at: datetime


class ApplicationList(BaseModel):
    applications: List[ApplicationOut]
    total: int


# --- bookmarks / recommendations -------------------------------------------

class BookmarkOut(ORMModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    project: Optional[ProjectWithOwner] = None
    created_at: datetime


class RecommendationOut(BaseModel):
    project: ProjectWithOwner
    reasons: List[str]
