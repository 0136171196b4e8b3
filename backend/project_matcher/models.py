"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table; relationships declare which children are
removed together with their parent. Lists of short strings (project skills,
tags) are stored comma-joined in a text column and exposed through
`get_*_list` / `set_*_list` helpers.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def split_list(value: Optional[str]) -> List[str]:
    """Decode a comma-joined column value into a list of strings."""
    if not value:
        return []
    return [item for item in value.split(",") if item]


def join_list(items: Optional[Iterable[str]]) -> str:
    """Encode a list of strings for storage; commas inside items become spaces."""
    cleaned = []
    for item in items or []:
        text = (item or "").replace(",", " ").strip()
        if text:
            cleaned.append(text)
    return ",".join(cleaned)


class ProjectRole(str, Enum):
    OWNER = "Owner"
    MEMBER = "Member"
    MENTOR = "Mentor"


class TaskStatus(str, Enum):
    TO_DO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BLOCKED = "Blocked"


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    INVITED = "Invited"


class ProfileSkillLink(SQLModel, table=True):
    """Many-to-many link between profiles and skills."""
    profile_id: uuid.UUID = Field(foreign_key="userprofile.id", primary_key=True, ondelete="CASCADE")
    skill_id: uuid.UUID = Field(foreign_key="skill.id", primary_key=True, ondelete="CASCADE")


class ProfileInterestLink(SQLModel, table=True):
    """Many-to-many link between profiles and interests."""
    profile_id: uuid.UUID = Field(foreign_key="userprofile.id", primary_key=True, ondelete="CASCADE")
    interest_id: uuid.UUID = Field(foreign_key="interest.id", primary_key=True, ondelete="CASCADE")


class User(SQLModel, table=True):
    """A platform user mirrored from the identity provider.

    Fields:
    - `cognito_sub`: stable subject id issued by the identity provider
    - `email`: unique contact address
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cognito_sub: str = Field(index=True, unique=True, nullable=False)
    email: str = Field(index=True, unique=True, nullable=False)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_username: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    profile: Optional["UserProfile"] = Relationship(
        back_populates="user", cascade_delete=True, sa_relationship_kwargs={"uselist": False}
    )
    owned_projects: List["Project"] = Relationship(back_populates="owner", cascade_delete=True)
    memberships: List["ProjectMembership"] = Relationship(back_populates="user", cascade_delete=True)
    assigned_tasks: List["Task"] = Relationship(back_populates="assignee")
    applications: List["Application"] = Relationship(back_populates="applicant", cascade_delete=True)
    bookmarks: List["Bookmark"] = Relationship(back_populates="user", cascade_delete=True)


class Skill(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, unique=True, nullable=False)
    description: Optional[str] = Field(default=None, sa_type=Text)


class Interest(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, unique=True, nullable=False)
    description: Optional[str] = Field(default=None, sa_type=Text)


class UserProfile(SQLModel, table=True):
    """Extended profile information for a `User` (one per user)."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", unique=True, nullable=False, ondelete="CASCADE")
    user_type: Optional[str] = None
    program: Optional[str] = None
    signup_experience: Optional[str] = Field(default=None, sa_type=Text)
    status: Optional[str] = None
    institution: Optional[str] = None
    bio: Optional[str] = Field(default=None, sa_type=Text)
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    user: Optional[User] = Relationship(back_populates="profile")
    skills: List[Skill] = Relationship(link_model=ProfileSkillLink, sa_relationship_kwargs={"order_by": "Skill.name"})
    interests: List[Interest] = Relationship(
        link_model=ProfileInterestLink, sa_relationship_kwargs={"order_by": "Interest.name"}
    )
    work_experiences: List["WorkExperience"] = Relationship(back_populates="profile", cascade_delete=True)
    portfolio_projects: List["PortfolioProject"] = Relationship(
        back_populates="profile",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "PortfolioProject.created_at.desc()"},
    )


class WorkExperience(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    profile_id: uuid.UUID = Field(foreign_key="userprofile.id", index=True, nullable=False, ondelete="CASCADE")
    date_range: str
    work_name: str
    description: str = Field(sa_type=Text)

    profile: Optional[UserProfile] = Relationship(back_populates="work_experiences")


class PortfolioProject(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    profile_id: uuid.UUID = Field(foreign_key="userprofile.id", index=True, nullable=False, ondelete="CASCADE")
    title: str
    description: str = Field(sa_type=Text)
    tags: str = Field(default="", sa_type=Text)
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    profile: Optional[UserProfile] = Relationship(back_populates="portfolio_projects")

    def get_tags_list(self) -> List[str]:
        return split_list(self.tags)

    def set_tags_list(self, tags: Iterable[str]) -> None:
        self.tags = join_list(tags)


class Project(SQLModel, table=True):
    """A collaborative project owned by exactly one user."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE")
    title: str
    description: str = Field(sa_type=Text)
    num_of_members: Optional[str] = None
    project_type: Optional[str] = None
    mentor_request: Optional[str] = None
    preferred_mentor: Optional[str] = None
    required_skills: str = Field(default="", sa_type=Text)
    tags: str = Field(default="", sa_type=Text)
    required_roles: Optional[str] = Field(default=None, sa_type=Text)
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    owner: Optional[User] = Relationship(back_populates="owned_projects")
    memberships: List["ProjectMembership"] = Relationship(
        back_populates="project",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "ProjectMembership.joined_at"},
    )
    milestones: List["Milestone"] = Relationship(
        back_populates="project",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "Milestone.date"},
    )
    applications: List["Application"] = Relationship(back_populates="project", cascade_delete=True)
    bookmarks: List["Bookmark"] = Relationship(back_populates="project", cascade_delete=True)

    def get_required_skills_list(self) -> List[str]:
        return split_list(self.required_skills)

    def set_required_skills_list(self, skills: Iterable[str]) -> None:
        self.required_skills = join_list(skills)

    def get_tags_list(self) -> List[str]:
        return split_list(self.tags)

    def set_tags_list(self, tags: Iterable[str]) -> None:
        self.tags = join_list(tags)


class ProjectMembership(SQLModel, table=True):
    """A user's role within a project. One row per (user, project)."""
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_membership_user_project"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE")
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True, nullable=False, ondelete="CASCADE")
    role: ProjectRole = Field(default=ProjectRole.MEMBER)
    joined_at: datetime = Field(default_factory=utcnow)

    user: Optional[User] = Relationship(back_populates="memberships")
    project: Optional[Project] = Relationship(back_populates="memberships")


class Milestone(SQLModel, table=True):
    """A dated checkpoint of a project; at most one is active at a time."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True, nullable=False, ondelete="CASCADE")
    title: str
    date: datetime
    active: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    project: Optional[Project] = Relationship(back_populates="milestones")
    tasks: List["Task"] = Relationship(
        back_populates="milestone",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "Task.created_at"},
    )


class Task(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    milestone_id: uuid.UUID = Field(foreign_key="milestone.id", index=True, nullable=False, ondelete="CASCADE")
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", nullable=True, ondelete="SET NULL")
    name: str
    description: str = Field(sa_type=Text)
    status: TaskStatus = Field(default=TaskStatus.TO_DO)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    milestone: Optional[Milestone] = Relationship(back_populates="tasks")
    assignee: Optional[User] = Relationship(back_populates="assigned_tasks")


class Application(SQLModel, table=True):
    """A request to join a project, or an invitation from its owner (status Invited)."""
    __table_args__ = (UniqueConstraint("applicant_id", "project_id", name="uq_application_applicant_project"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    applicant_id: uuid.UUID = Field(foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE")
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True, nullable=False, ondelete="CASCADE")
    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING)
    role_applied_for: Optional[str] = None
    message: Optional[str] = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    applicant: Optional[User] = Relationship(back_populates="applications")
    project: Optional[Project] = Relationship(back_populates="applications")


class Bookmark(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_bookmark_user_project"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE")
    project_id: uuid.UUID = Field(foreign_key="project.id", index=True, nullable=False, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow, index=True)

    user: Optional[User] = Relationship(back_populates="bookmarks")
    project: Optional[Project] = Relationship(back_populates="bookmarks")
