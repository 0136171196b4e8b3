"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
profiles, skills, projects, memberships, milestones, tasks, applications,
bookmarks). Repositories return SQLModel objects and perform
commits/refreshes where appropriate. A unique-index violation rolls the
session back and re-raises `IntegrityError` so services can translate it.
"""

import uuid
from typing import Iterable, List, Optional, Sequence, Tuple, Type

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, col, select

from . import models


def _commit(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_column_contains(column, value: str):
    """Case-insensitive element match against a comma-joined list column."""
    v = _like_escape(value.strip())
    return or_(
        column.ilike(f"{v},%", escape="\\"),
        column.ilike(f"%,{v},%", escape="\\"),
        column.ilike(f"%,{v}", escape="\\"),
        column.ilike(v, escape="\\"),
    )


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create_with_profile(self, user: models.User) -> models.User:
        """Persist a new user together with an empty profile."""
        self.session.add(user)
        self.session.add(models.UserProfile(user_id=user.id))
        _commit(self.session)
        self.session.refresh(user)
        return user

    def save(self, user: models.User) -> models.User:
        self.session.add(user)
        _commit(self.session)
        self.session.refresh(user)
        return user

    def get(self, user_id: uuid.UUID) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def get_by_cognito_sub(self, sub: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.cognito_sub == sub)
        return self.session.exec(stmt).first()

    def get_by_email(self, email: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.User]:
        stmt = select(models.User).order_by(col(models.User.created_at))
        return list(self.session.exec(stmt).all())


class ProfileRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[models.UserProfile]:
        stmt = select(models.UserProfile).where(models.UserProfile.user_id == user_id)
        return self.session.exec(stmt).first()

    def create(self, profile: models.UserProfile) -> models.UserProfile:
        self.session.add(profile)
        _commit(self.session)
        self.session.refresh(profile)
        return profile

    def save(self, profile: models.UserProfile, *related: SQLModel) -> models.UserProfile:
        """Persist the profile and any related rows changed alongside it in one commit."""
        for obj in related:
            self.session.add(obj)
        self.session.add(profile)
        _commit(self.session)
        self.session.refresh(profile)
        return profile


class NamedTagRepository:
    """Shared queries for the name-keyed lookup tables (`Skill`, `Interest`)."""
    model: Type[SQLModel]

    def __init__(self, session: Session, model: Type[SQLModel]):
        self.session = session
        self.model = model

    def list_all(self) -> List[SQLModel]:
        stmt = select(self.model).order_by(col(self.model.name))
        return list(self.session.exec(stmt).all())

    def get(self, item_id: uuid.UUID):
        return self.session.get(self.model, item_id)

    def get_by_name(self, name: str):
        stmt = select(self.model).where(self.model.name == name)
        return self.session.exec(stmt).first()

    def list_by_names(self, names: Sequence[str]) -> List[SQLModel]:
        if not names:
            return []
        stmt = select(self.model).where(col(self.model.name).in_(list(names)))
        return list(self.session.exec(stmt).all())

    def create_many(self, items: Iterable[SQLModel]) -> List[SQLModel]:
        items = list(items)
        for item in items:
            self.session.add(item)
        _commit(self.session)
        for item in items:
            self.session.refresh(item)
        return items

    def save(self, item):
        self.session.add(item)
        _commit(self.session)
        self.session.refresh(item)
        return item

    def delete(self, item) -> None:
        self.session.delete(item)
        self.session.commit()


class WorkExperienceRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, experience_id: uuid.UUID) -> Optional[models.WorkExperience]:
        return self.session.get(models.WorkExperience, experience_id)

    def list_for_profile(self, profile_id: uuid.UUID) -> List[models.WorkExperience]:
        stmt = select(models.WorkExperience).where(models.WorkExperience.profile_id == profile_id)
        return list(self.session.exec(stmt).all())

    def save(self, experience: models.WorkExperience) -> models.WorkExperience:
        self.session.add(experience)
        self.session.commit()
        self.session.refresh(experience)
        return experience

    def delete(self, experience: models.WorkExperience) -> None:
        self.session.delete(experience)
        self.session.commit()


class PortfolioProjectRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, item_id: uuid.UUID) -> Optional[models.PortfolioProject]:
        return self.session.get(models.PortfolioProject, item_id)

    def list_for_profile(self, profile_id: uuid.UUID) -> List[models.PortfolioProject]:
        """Return the profile's portfolio, newest first."""
        stmt = (
            select(models.PortfolioProject)
            .where(models.PortfolioProject.profile_id == profile_id)
            .order_by(col(models.PortfolioProject.created_at).desc())
        )
        return list(self.session.exec(stmt).all())

    def save(self, item: models.PortfolioProject) -> models.PortfolioProject:
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete(self, item: models.PortfolioProject) -> None:
        self.session.delete(item)
        self.session.commit()


class ProjectRepository:
    """Queries and persistence for `Project` aggregates."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, project_id: uuid.UUID) -> Optional[models.Project]:
        return self.session.get(models.Project, project_id)

    def create_with_owner(
        self,
        project: models.Project,
        owner_membership: models.ProjectMembership,
        milestones: Iterable[models.Milestone] = (),
    ) -> models.Project:
        """Insert the project, its owner membership and initial milestones in one commit."""
        self.session.add(project)
        self.session.add(owner_membership)
        for m in milestones:
            self.session.add(m)
        _commit(self.session)
        self.session.refresh(project)
        return project

    def save(self, project: models.Project) -> models.Project:
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project

    def delete(self, project: models.Project) -> None:
        self.session.delete(project)
        self.session.commit()

    def search(
        self,
        skip: int = 0,
        take: int = 10,
        search: Optional[str] = None,
        owner_id: Optional[uuid.UUID] = None,
        member_id: Optional[uuid.UUID] = None,
        skill: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Tuple[List[models.Project], int]:
        """Return one page of projects (newest first) and the total match count."""
        conditions = []
        if search and search.strip():
            pattern = f"%{_like_escape(search.strip())}%"
            conditions.append(
                or_(
                    col(models.Project.title).ilike(pattern, escape="\\"),
                    col(models.Project.description).ilike(pattern, escape="\\"),
                )
            )
        if owner_id:
            conditions.append(models.Project.owner_id == owner_id)
        if member_id:
            member_projects = select(models.ProjectMembership.project_id).where(
                models.ProjectMembership.user_id == member_id
            )
            conditions.append(col(models.Project.id).in_(member_projects))
        if skill and skill.strip():
            conditions.append(list_column_contains(col(models.Project.required_skills), skill))
        if tag and tag.strip():
            conditions.append(list_column_contains(col(models.Project.tags), tag))

        stmt = select(models.Project).where(*conditions)
        count_stmt = select(func.count()).select_from(models.Project).where(*conditions)
        total = self.session.exec(count_stmt).one()
        stmt = stmt.order_by(col(models.Project.created_at).desc()).offset(skip).limit(take)
        return list(self.session.exec(stmt).all()), int(total)

    def list_for_member(self, user_id: uuid.UUID) -> List[models.Project]:
        """Every project the user holds a membership in, newest first."""
        member_projects = select(models.ProjectMembership.project_id).where(
            models.ProjectMembership.user_id == user_id
        )
        stmt = (
            select(models.Project)
            .where(col(models.Project.id).in_(member_projects))
            .order_by(col(models.Project.created_at).desc())
        )
        return list(self.session.exec(stmt).all())

    def list_candidates_for(self, user_id: uuid.UUID, limit: int = 50) -> List[models.Project]:
        """Latest projects the user neither owns nor belongs to."""
        member_projects = select(models.ProjectMembership.project_id).where(
            models.ProjectMembership.user_id == user_id
        )
        stmt = (
            select(models.Project)
            .where(models.Project.owner_id != user_id, col(models.Project.id).not_in(member_projects))
            .order_by(col(models.Project.created_at).desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt).all())


class MembershipRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: uuid.UUID, project_id: uuid.UUID) -> Optional[models.ProjectMembership]:
        stmt = select(models.ProjectMembership).where(
            models.ProjectMembership.user_id == user_id,
            models.ProjectMembership.project_id == project_id,
        )
        return self.session.exec(stmt).first()

    def count_owners(self, project_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(models.ProjectMembership).where(
            models.ProjectMembership.project_id == project_id,
            models.ProjectMembership.role == models.ProjectRole.OWNER,
        )
        return int(self.session.exec(stmt).one())

    def save(self, membership: models.ProjectMembership) -> models.ProjectMembership:
        self.session.add(membership)
        _commit(self.session)
        self.session.refresh(membership)
        return membership

    def delete(self, membership: models.ProjectMembership) -> None:
        self.session.delete(membership)
        self.session.commit()


class MilestoneRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, milestone_id: uuid.UUID) -> Optional[models.Milestone]:
        return self.session.get(models.Milestone, milestone_id)

    def list_for_project(self, project_id: uuid.UUID) -> List[models.Milestone]:
        stmt = (
            select(models.Milestone)
            .where(models.Milestone.project_id == project_id)
            .order_by(col(models.Milestone.date))
        )
        return list(self.session.exec(stmt).all())

    def save(self, milestone: models.Milestone) -> models.Milestone:
        self.session.add(milestone)
        self.session.commit()
        self.session.refresh(milestone)
        return milestone

    def activate(self, milestone: models.Milestone) -> models.Milestone:
        """Mark `milestone` active and every sibling inactive in a single transaction.

        Any failure rolls the whole change back and re-raises.
        """
        try:
            for other in self.list_for_project(milestone.project_id):
                other.active = other.id == milestone.id
                self.session.add(other)
            milestone.active = True
            self.session.add(milestone)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(milestone)
        return milestone

    def delete(self, milestone: models.Milestone) -> None:
        self.session.delete(milestone)
        self.session.commit()


class TaskRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, task_id: uuid.UUID) -> Optional[models.Task]:
        return self.session.get(models.Task, task_id)

    def list_for_milestone(self, milestone_id: uuid.UUID) -> List[models.Task]:
        stmt = (
            select(models.Task)
            .where(models.Task.milestone_id == milestone_id)
            .order_by(col(models.Task.created_at))
        )
        return list(self.session.exec(stmt).all())

    def save(self, task: models.Task) -> models.Task:
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def delete(self, task: models.Task) -> None:
        self.session.delete(task)
        self.session.commit()


class ApplicationRepository:
    """Persistence and listing views for `Application` rows."""

    VIEWS = ("sent", "received", "mine", "project")

    def __init__(self, session: Session):
        self.session = session

    def get(self, application_id: uuid.UUID) -> Optional[models.Application]:
        return self.session.get(models.Application, application_id)

    def get_for(self, applicant_id: uuid.UUID, project_id: uuid.UUID) -> Optional[models.Application]:
        stmt = select(models.Application).where(
            models.Application.applicant_id == applicant_id,
            models.Application.project_id == project_id,
        )
        return self.session.exec(stmt).first()

    def save(self, application: models.Application, *related: SQLModel) -> models.Application:
        """Persist the application plus related rows (e.g. a new membership) atomically."""
        for obj in related:
            self.session.add(obj)
        self.session.add(application)
        _commit(self.session)
        self.session.refresh(application)
        return application

    def search(
        self,
        user_id: uuid.UUID,
        view: str,
        status: Optional[models.ApplicationStatus] = None,
        project_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        take: int = 10,
    ) -> Tuple[List[models.Application], int]:
        """Return one page of applications for a listing view, newest first.

        Views:
        - `sent`: the user's pending applications
        - `received`: invitations addressed to the user plus pending
          applications to projects the user owns
        - `mine`: the user's applications (pending + invited unless `status`)
        - `project`: pending applications to `project_id`
        """
        A = models.Application
        if view not in self.VIEWS:
            raise ValueError(f"unknown application view {view!r}")
        if view == "sent":
            conditions = [A.applicant_id == user_id, A.status == models.ApplicationStatus.PENDING]
        elif view == "received":
            conditions = [
                or_(
                    and_(A.applicant_id == user_id, A.status == models.ApplicationStatus.INVITED),
                    and_(models.Project.owner_id == user_id, A.status == models.ApplicationStatus.PENDING),
                )
            ]
        elif view == "mine":
            statuses = [status] if status else [models.ApplicationStatus.PENDING, models.ApplicationStatus.INVITED]
            conditions = [A.applicant_id == user_id, col(A.status).in_(statuses)]
        else:
            conditions = [A.project_id == project_id, A.status == models.ApplicationStatus.PENDING]

        if status and view != "mine":
            conditions.append(A.status == status)
        if project_id and view != "project":
            conditions.append(A.project_id == project_id)

        stmt = select(A).join(models.Project, models.Project.id == A.project_id).where(*conditions)
        count_stmt = (
            select(func.count())
            .select_from(A)
            .join(models.Project, models.Project.id == A.project_id)
            .where(*conditions)
        )
        total = self.session.exec(count_stmt).one()
        stmt = stmt.order_by(col(A.created_at).desc()).offset(skip).limit(take)
        return list(self.session.exec(stmt).all()), int(total)


class BookmarkRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_for(self, user_id: uuid.UUID, project_id: uuid.UUID) -> Optional[models.Bookmark]:
        stmt = select(models.Bookmark).where(
            models.Bookmark.user_id == user_id,
            models.Bookmark.project_id == project_id,
        )
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: uuid.UUID) -> List[models.Bookmark]:
        stmt = (
            select(models.Bookmark)
            .where(models.Bookmark.user_id == user_id)
            .order_by(col(models.Bookmark.created_at).desc())
        )
        return list(self.session.exec(stmt).all())

    def create(self, bookmark: models.Bookmark) -> models.Bookmark:
        self.session.add(bookmark)
        _commit(self.session)
        self.session.refresh(bookmark)
        return bookmark

    def delete(self, bookmark: models.Bookmark) -> None:
        self.session.delete(bookmark)
        self.session.commit()
