"""Business logic services used by HTTP routers.

This module holds small service classes that coordinate repositories and
enforce the platform rules: who may edit a project, how membership roles
may change, which applications a user may see or decide, and how the
active milestone is switched. Services raise `errors.ServiceError`
subclasses; routers never build error responses themselves.
"""

import json
import logging
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from . import llm, models, repositories, schemas
from .errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalServiceError,
    NotFoundError,
    RecommendationError,
)

logger = logging.getLogger("project_matcher.services")


def _clean_names(names: Iterable[str]) -> List[str]:
    """Trim, drop empties and de-duplicate while keeping first-seen order."""
    out: List[str] = []
    seen = set()
    for name in names or []:
        name = (name or "").strip()
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return out


class UserService:
    """User lookup and identity-provider synchronisation."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.profile_repo = repositories.ProfileRepository(session)

    def list_users(self) -> List[models.User]:
        return self.user_repo.list_all()

    def find_one(self, user_id: uuid.UUID) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    def find_by_cognito_sub(self, sub: str) -> Optional[models.User]:
        return self.user_repo.get_by_cognito_sub(sub)

    def find_by_email(self, email: str) -> Optional[models.User]:
        return self.user_repo.get_by_email(email)

    def sync(self, payload: schemas.UserSyncIn) -> models.User:
        """Create or update the user identified by `cognito_sub`.

        New users receive an empty profile. Existing users get their email
        and names refreshed from the identity provider.
        """
        user = self.user_repo.get_by_cognito_sub(payload.cognito_sub)
        try:
            if user is None:
                user = models.User(
                    cognito_sub=payload.cognito_sub,
                    email=payload.email,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    preferred_username=payload.preferred_username,
                )
                user = self.user_repo.create_with_profile(user)
                logger.info("user_created id=%s", user.id)
                return user
            user.email = payload.email
            user.first_name = payload.first_name
            user.last_name = payload.last_name
            user.preferred_username = payload.preferred_username
            user = self.user_repo.save(user)
        except IntegrityError:
            raise ConflictError(f"Email {payload.email} already exists.")
        if self.profile_repo.get_by_user_id(user.id) is None:
            logger.warning("user %s had no profile; creating an empty one", user.id)
            self.profile_repo.create(models.UserProfile(user_id=user.id))
        return user

    def update_core_info(
        self,
        user: models.User,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        preferred_username: Optional[str] = None,
    ) -> models.User:
        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        if preferred_username is not None:
            user.preferred_username = preferred_username
        return self.user_repo.save(user)


class NamedTagService:
    """Lookup-table operations shared by skills and interests."""
    model = None
    label = "Item"

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.NamedTagRepository(session, self.model)

    def find_all(self):
        return self.repo.list_all()

    def find_one(self, item_id: uuid.UUID):
        item = self.repo.get(item_id)
        if not item:
            raise NotFoundError(f"{self.label} with ID {item_id} not found")
        return item

    def find_by_name(self, name: str):
        return self.repo.get_by_name(name.strip())

    def find_or_create_by_name(self, names: Iterable[str]) -> list:
        """Return rows for `names`, creating the ones that do not exist yet."""
        cleaned = _clean_names(names)
        if not cleaned:
            return []
        by_name = {item.name: item for item in self.repo.list_by_names(cleaned)}
        missing = [n for n in cleaned if n not in by_name]
        if missing:
            try:
                created = self.repo.create_many(self.model(name=n) for n in missing)
            except IntegrityError:
                # another request inserted some of the names first
                logger.warning("%s insert race for %s; re-reading", self.label.lower(), missing)
                by_name = {item.name: item for item in self.repo.list_by_names(cleaned)}
            else:
                by_name.update({item.name: item for item in created})
        return [by_name[n] for n in cleaned if n in by_name]

    def create(self, name: str, description: Optional[str] = None):
        name = (name or "").strip()
        if not name:
            raise ConflictError(f"{self.label} name cannot be empty.")
        if self.repo.get_by_name(name):
            raise ConflictError(f"{self.label} with name '{name}' already exists.")
        try:
            return self.repo.save(self.model(name=name, description=description))
        except IntegrityError:
            raise ConflictError(f"{self.label} with name '{name}' already exists.")

    def update(self, item_id: uuid.UUID, name: Optional[str] = None, description: Optional[str] = None):
        item = self.find_one(item_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ConflictError(f"{self.label} name cannot be empty.")
            existing = self.repo.get_by_name(name)
            if existing and existing.id != item.id:
                raise ConflictError(f"{self.label} with name '{name}' already exists.")
            item.name = name
        if description is not None:
            item.description = description
        try:
            return self.repo.save(item)
        except IntegrityError:
            raise ConflictError(f"{self.label} with name '{name}' already exists.")

    def remove(self, item_id: uuid.UUID) -> None:
        self.repo.delete(self.find_one(item_id))


class SkillService(NamedTagService):
    model = models.Skill
    label = "Skill"


class InterestService(NamedTagService):
    model = models.Interest
    label = "Interest"


class ProfileService:
    def __init__(self, session: Session):
        self.session = session
        self.profile_repo = repositories.ProfileRepository(session)
        self.skills = SkillService(session)
        self.interests = InterestService(session)

    def get_for_user(self, user_id: uuid.UUID) -> models.UserProfile:
        profile = self.profile_repo.get_by_user_id(user_id)
        if not profile:
            raise NotFoundError(f"Profile not found for user {user_id}")
        return profile

    def update(self, user: models.User, payload: schemas.ProfileUpdate) -> models.UserProfile:
        """Apply a partial update to the user's profile (and names on the user)."""
        profile = self.get_for_user(user.id)
        data = payload.model_dump(exclude_unset=True, mode="json")
        # resolve tags first: a create race rolls back the session
        skills = data.pop("skills", None)
        interests = data.pop("interests", None)
        new_skills = self.skills.find_or_create_by_name(skills) if skills is not None else None
        new_interests = self.interests.find_or_create_by_name(interests) if interests is not None else None

        first_name = data.pop("first_name", None)
        last_name = data.pop("last_name", None)
        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        for key, value in data.items():
            setattr(profile, key, value)
        if new_skills is not None:
            profile.skills = new_skills
        if new_interests is not None:
            profile.interests = new_interests
        return self.profile_repo.save(profile, user)

    def complete_signup(self, user: models.User, payload: schemas.CompleteSignupIn) -> models.UserProfile:
        profile = self.get_for_user(user.id)
        skills = self.skills.find_or_create_by_name(payload.skills)
        interests = self.interests.find_or_create_by_name(payload.interests)
        if not skills or not interests:
            raise BadRequestError("At least one skill and one interest are required.")
        profile.user_type = payload.user_type
        profile.program = payload.program
        profile.signup_experience = payload.signup_experience
        profile.skills = skills
        profile.interests = interests
        profile = self.profile_repo.save(profile)
        logger.info("signup_completed user_id=%s", user.id)
        return profile


class WorkExperienceService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.WorkExperienceRepository(session)
        self.profiles = ProfileService(session)

    def _get_owned(self, user: models.User, experience_id: uuid.UUID) -> models.WorkExperience:
        profile = self.profiles.get_for_user(user.id)
        experience = self.repo.get(experience_id)
        if not experience:
            raise NotFoundError(f"Work experience with ID {experience_id} not found")
        if experience.profile_id != profile.id:
            raise ForbiddenError("You do not have permission to modify this work experience.")
        return experience

    def find_all(self, user: models.User) -> List[models.WorkExperience]:
        profile = self.profiles.get_for_user(user.id)
        return self.repo.list_for_profile(profile.id)

    def create(self, user: models.User, payload: schemas.WorkExperienceIn) -> models.WorkExperience:
        profile = self.profiles.get_for_user(user.id)
        experience = models.WorkExperience(profile_id=profile.id, **payload.model_dump())
        return self.repo.save(experience)

    def update(self, user: models.User, experience_id: uuid.UUID, payload: schemas.WorkExperienceUpdate):
        experience = self._get_owned(user, experience_id)
        for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(experience, key, value)
        return self.repo.save(experience)

    def remove(self, user: models.User, experience_id: uuid.UUID) -> None:
        self.repo.delete(self._get_owned(user, experience_id))


class PortfolioProjectService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.PortfolioProjectRepository(session)
        self.profiles = ProfileService(session)

    def _get_owned(self, user: models.User, item_id: uuid.UUID) -> models.PortfolioProject:
        profile = self.profiles.get_for_user(user.id)
        item = self.repo.get(item_id)
        if not item:
            raise NotFoundError(f"Portfolio project with ID {item_id} not found")
        if item.profile_id != profile.id:
            raise ForbiddenError("You do not have permission to modify this portfolio project.")
        return item

    def find_all(self, user: models.User) -> List[models.PortfolioProject]:
        profile = self.profiles.get_for_user(user.id)
        return self.repo.list_for_profile(profile.id)

    def create(self, user: models.User, payload: schemas.PortfolioProjectIn) -> models.PortfolioProject:
        profile = self.profiles.get_for_user(user.id)
        data = payload.model_dump(mode="json")
        tags = data.pop("tags", [])
        item = models.PortfolioProject(profile_id=profile.id, **data)
        item.set_tags_list(tags)
        return self.repo.save(item)

    def update(self, user: models.User, item_id: uuid.UUID, payload: schemas.PortfolioProjectUpdate):
        item = self._get_owned(user, item_id)
        data = payload.model_dump(exclude_unset=True, mode="json")
        tags = data.pop("tags", None)
        for key, value in data.items():
            if key in ("title", "description") and value is None:
                continue
            setattr(item, key, value)
        if tags is not None:
            item.set_tags_list(tags)
        return self.repo.save(item)

    def remove(self, user: models.User, item_id: uuid.UUID) -> None:
        self.repo.delete(self._get_owned(user, item_id))


class ProjectService:
    """Project CRUD plus membership management.

    Role rules:
    - only the project owner edits, deletes or manages members
    - a project never gets a second Owner membership
    - the only owner cannot be demoted or removed
    - members may remove themselves
    """
    def __init__(self, session: Session):
        self.session = session
        self.project_repo = repositories.ProjectRepository(session)
        self.membership_repo = repositories.MembershipRepository(session)
        self.users = UserService(session)

    def find_one(self, project_id: uuid.UUID) -> models.Project:
        project = self.project_repo.get(project_id)
        if not project:
            raise NotFoundError(f"Project with ID {project_id} not found")
        return project

    def is_member(self, project: models.Project, user_id: uuid.UUID) -> bool:
        if project.owner_id == user_id:
            return True
        return self.membership_repo.get(user_id, project.id) is not None

    def _require_owner(self, project: models.Project, user: models.User, action: str) -> None:
        if project.owner_id != user.id:
            raise ForbiddenError(f"Only the project owner can {action}.")

    def create(self, owner: models.User, payload: schemas.ProjectCreate) -> models.Project:
        data = payload.model_dump(exclude={"required_skills", "tags", "milestones"})
        project = models.Project(owner_id=owner.id, **data)
        project.set_required_skills_list(payload.required_skills)
        project.set_tags_list(payload.tags)
        membership = models.ProjectMembership(user_id=owner.id, project_id=project.id, role=models.ProjectRole.OWNER)
        milestones = [
            models.Milestone(project_id=project.id, title=m.title, date=m.date) for m in payload.milestones
        ]
        project = self.project_repo.create_with_owner(project, membership, milestones)
        logger.info("project_created id=%s owner_id=%s milestones=%d", project.id, owner.id, len(milestones))
        return project

    def find_all(
        self,
        skip: int = 0,
        take: int = 10,
        search: Optional[str] = None,
        owner_id: Optional[uuid.UUID] = None,
        member_id: Optional[uuid.UUID] = None,
        skill: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Tuple[List[models.Project], int]:
        return self.project_repo.search(
            skip=skip, take=take, search=search, owner_id=owner_id, member_id=member_id, skill=skill, tag=tag
        )

    def find_for_member(self, user: models.User) -> List[models.Project]:
        return self.project_repo.list_for_member(user.id)

    def update(self, project_id: uuid.UUID, user: models.User, payload: schemas.ProjectUpdate) -> models.Project:
        project = self.find_one(project_id)
        self._require_owner(project, user, "update the project")
        data = payload.model_dump(exclude_unset=True)
        required_skills = data.pop("required_skills", None)
        tags = data.pop("tags", None)
        for key, value in data.items():
            if key in ("title", "description") and value is None:
                continue
            setattr(project, key, value)
        if required_skills is not None:
            project.set_required_skills_list(required_skills)
        if tags is not None:
            project.set_tags_list(tags)
        return self.project_repo.save(project)

    def remove(self, project_id: uuid.UUID, user: models.User) -> None:
        project = self.find_one(project_id)
        self._require_owner(project, user, "delete the project")
        self.project_repo.delete(project)
        logger.info("project_deleted id=%s", project_id)

    def add_member(self, project_id: uuid.UUID, requester: models.User, payload: schemas.AddMemberIn):
        project = self.find_one(project_id)
        self._require_owner(project, requester, "add members")
        self.users.find_one(payload.user_id)
        if self.membership_repo.get(payload.user_id, project.id):
            raise BadRequestError("User is already a member of this project.")
        if payload.role == models.ProjectRole.OWNER and self.membership_repo.count_owners(project.id) > 0:
            raise BadRequestError("Project already has an owner.")
        membership = models.ProjectMembership(user_id=payload.user_id, project_id=project.id, role=payload.role)
        try:
            return self.membership_repo.save(membership)
        except IntegrityError:
            raise BadRequestError("User is already a member of this project.")

    def update_member_role(
        self,
        project_id: uuid.UUID,
        member_user_id: uuid.UUID,
        requester: models.User,
        role: models.ProjectRole,
    ) -> models.ProjectMembership:
        project = self.find_one(project_id)
        self._require_owner(project, requester, "change member roles")
        membership = self.membership_repo.get(member_user_id, project.id)
        if not membership:
            raise NotFoundError(f"Membership not found for user {member_user_id} in project {project_id}")
        if membership.role == models.ProjectRole.OWNER and role != models.ProjectRole.OWNER:
            if self.membership_repo.count_owners(project.id) <= 1:
                raise BadRequestError("Cannot change the role of the only owner.")
        if role == models.ProjectRole.OWNER and membership.role != models.ProjectRole.OWNER:
            raise BadRequestError("Cannot assign OWNER role to another member.")
        membership.role = role
        return self.membership_repo.save(membership)

    def remove_member(self, project_id: uuid.UUID, member_user_id: uuid.UUID, requester: models.User) -> None:
        project = self.find_one(project_id)
        if project.owner_id != requester.id and requester.id != member_user_id:
            raise ForbiddenError("You do not have permission to remove this member.")
        membership = self.membership_repo.get(member_user_id, project.id)
        if not membership:
            raise NotFoundError(f"Membership not found for user {member_user_id} in project {project_id}")
        if membership.role == models.ProjectRole.OWNER and self.membership_repo.count_owners(project.id) <= 1:
            raise BadRequestError(
                "Cannot remove the only owner of the project. Transfer ownership or delete the project instead."
            )
        self.membership_repo.delete(membership)
        logger.info("member_removed project_id=%s user_id=%s by=%s", project_id, member_user_id, requester.id)


class MilestoneService:
    """Milestones are visible and editable by any project member."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.MilestoneRepository(session)
        self.projects = ProjectService(session)

    def get_project_for_member(self, project_id: uuid.UUID, user: models.User) -> models.Project:
        project = self.projects.find_one(project_id)
        if not self.projects.is_member(project, user.id):
            raise ForbiddenError("You must be a member of this project to access its milestones.")
        return project

    def _activate(self, milestone: models.Milestone) -> models.Milestone:
        try:
            return self.repo.activate(milestone)
        except SQLAlchemyError as e:
            logger.error("milestone activation failed id=%s: %s", milestone.id, e)
            raise InternalServiceError("Failed to activate milestone.")

    def find_all(self, project_id: uuid.UUID, user: models.User) -> List[models.Milestone]:
        self.get_project_for_member(project_id, user)
        return self.repo.list_for_project(project_id)

    def find_one(self, project_id: uuid.UUID, milestone_id: uuid.UUID, user: models.User) -> models.Milestone:
        self.get_project_for_member(project_id, user)
        milestone = self.repo.get(milestone_id)
        if not milestone or milestone.project_id != project_id:
            raise NotFoundError(f"Milestone with ID {milestone_id} not found in project {project_id}")
        return milestone

    def create(self, project_id: uuid.UUID, user: models.User, payload: schemas.MilestoneIn) -> models.Milestone:
        self.get_project_for_member(project_id, user)
        milestone = self.repo.save(models.Milestone(project_id=project_id, title=payload.title, date=payload.date))
        if payload.active:
            milestone = self._activate(milestone)
        return milestone

    def update(
        self,
        project_id: uuid.UUID,
        milestone_id: uuid.UUID,
        user: models.User,
        payload: schemas.MilestoneUpdate,
    ) -> models.Milestone:
        milestone = self.find_one(project_id, milestone_id, user)
        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        active = data.pop("active", None)
        for key, value in data.items():
            setattr(milestone, key, value)
        if active:
            # field edits ride along in the activation commit
            return self._activate(milestone)
        if active is False:
            milestone.active = False
        return self.repo.save(milestone)

    def activate(self, project_id: uuid.UUID, milestone_id: uuid.UUID, user: models.User) -> models.Milestone:
        """Make this milestone the project's only active one."""
        milestone = self.find_one(project_id, milestone_id, user)
        milestone = self._activate(milestone)
        logger.info("milestone_activated id=%s project_id=%s", milestone_id, project_id)
        return milestone

    def remove(self, project_id: uuid.UUID, milestone_id: uuid.UUID, user: models.User) -> None:
        self.repo.delete(self.find_one(project_id, milestone_id, user))


class TaskService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.TaskRepository(session)
        self.milestones = MilestoneService(session)
        self.users = UserService(session)

    def _check_assignee(self, project: models.Project, assignee_id: uuid.UUID) -> None:
        user = self.users.user_repo.get(assignee_id)
        if not user:
            raise NotFoundError(f"Assignee user with ID {assignee_id} not found")
        if not self.milestones.projects.is_member(project, assignee_id):
            raise BadRequestError(
                f"User {assignee_id} is not a member of this project and cannot be assigned tasks."
            )

    def find_all(self, project_id: uuid.UUID, milestone_id: uuid.UUID, user: models.User) -> List[models.Task]:
        self.milestones.find_one(project_id, milestone_id, user)
        return self.repo.list_for_milestone(milestone_id)

    def find_one(
        self, project_id: uuid.UUID, milestone_id: uuid.UUID, task_id: uuid.UUID, user: models.User
    ) -> models.Task:
        self.milestones.find_one(project_id, milestone_id, user)
        task = self.repo.get(task_id)
        if not task or task.milestone_id != milestone_id:
            raise NotFoundError(f"Task with ID {task_id} not found in milestone {milestone_id}")
        return task

    def create(
        self, project_id: uuid.UUID, milestone_id: uuid.UUID, user: models.User, payload: schemas.TaskIn
    ) -> models.Task:
        milestone = self.milestones.find_one(project_id, milestone_id, user)
        if payload.assignee_id is not None:
            self._check_assignee(milestone.project, payload.assignee_id)
        task = models.Task(milestone_id=milestone.id, **payload.model_dump())
        return self.repo.save(task)

    def update(
        self,
        project_id: uuid.UUID,
        milestone_id: uuid.UUID,
        task_id: uuid.UUID,
        user: models.User,
        payload: schemas.TaskUpdate,
    ) -> models.Task:
        task = self.find_one(project_id, milestone_id, task_id, user)
        data = payload.model_dump(exclude_unset=True)
        if "assignee_id" in data and data["assignee_id"] is not None:
            self._check_assignee(task.milestone.project, data["assignee_id"])
        for key, value in data.items():
            if key != "assignee_id" and value is None:
                continue
            setattr(task, key, value)
        return self.repo.save(task)

    def assign(
        self,
        project_id: uuid.UUID,
        milestone_id: uuid.UUID,
        task_id: uuid.UUID,
        user: models.User,
        assignee_id: Optional[uuid.UUID],
    ) -> models.Task:
        """Assign the task to a project member, or unassign it with `None`."""
        task = self.find_one(project_id, milestone_id, task_id, user)
        if assignee_id is not None:
            self._check_assignee(task.milestone.project, assignee_id)
        task.assignee_id = assignee_id
        return self.repo.save(task)

    def remove(self, project_id: uuid.UUID, milestone_id: uuid.UUID, task_id: uuid.UUID, user: models.User) -> None:
        self.repo.delete(self.find_one(project_id, milestone_id, task_id, user))


def _membership_role(role_applied_for: Optional[str]) -> models.ProjectRole:
    """Project role granted on acceptance: a named non-owner role, else Member."""
    for role in (models.ProjectRole.MEMBER, models.ProjectRole.MENTOR):
        if role_applied_for and role_applied_for.strip().lower() == role.value.lower():
            return role
    return models.ProjectRole.MEMBER


class ApplicationService:
    """Applications to join projects and owner invitations.

    Lifecycle: Pending (user applied) or Invited (owner invited) moves to
    Accepted or Declined exactly once. Pending ones are decided by the
    project owner, invitations by the invitee.
    """
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ApplicationRepository(session)
        self.membership_repo = repositories.MembershipRepository(session)
        self.projects = ProjectService(session)
        self.users = UserService(session)

    def apply(self, project_id: uuid.UUID, user: models.User, payload: schemas.ApplicationCreate) -> models.Application:
        project = self.projects.find_one(project_id)
        if self.projects.is_member(project, user.id):
            raise BadRequestError("You are already a member or the owner of this project.")
        if self.repo.get_for(user.id, project.id):
            raise ConflictError("You have already applied to or been invited to this project.")
        application = models.Application(
            applicant_id=user.id,
            project_id=project.id,
            role_applied_for=payload.role_applied_for,
            message=payload.message,
        )
        try:
            application = self.repo.save(application)
        except IntegrityError:
            raise ConflictError("You have already applied to or been invited to this project.")
        logger.info("application_created id=%s project_id=%s", application.id, project.id)
        return application

    def invite(self, project_id: uuid.UUID, inviter: models.User, payload: schemas.InviteUserIn) -> models.Application:
        project = self.projects.find_one(project_id)
        if project.owner_id != inviter.id:
            raise ForbiddenError("Only the project owner can invite users.")
        invitee = self.users.find_one(payload.user_id)
        if self.projects.is_member(project, invitee.id):
            raise BadRequestError("User is already a member or the owner of this project.")
        if self.repo.get_for(invitee.id, project.id):
            raise ConflictError("An application or invitation already exists for this user and project.")
        application = models.Application(
            applicant_id=invitee.id,
            project_id=project.id,
            status=models.ApplicationStatus.INVITED,
            role_applied_for=payload.role or models.ProjectRole.MEMBER.value,
        )
        try:
            application = self.repo.save(application)
        except IntegrityError:
            raise ConflictError("An application or invitation already exists for this user and project.")
        logger.info("invitation_created id=%s project_id=%s invitee=%s", application.id, project.id, invitee.id)
        return application

    def find_all(
        self,
        user: models.User,
        project_id: Optional[uuid.UUID] = None,
        applicant_id: Optional[str] = None,
        status: Optional[models.ApplicationStatus] = None,
        filter_type: Optional[str] = None,
        skip: int = 0,
        take: int = 10,
    ) -> Tuple[List[models.Application], int]:
        """List applications through one of the supported views.

        `filter_type` (`sent` / `received`) wins over `applicant_id`, which
        wins over `project_id`. Without any of them the request is rejected.
        """
        if filter_type:
            if filter_type not in ("sent", "received"):
                raise BadRequestError("filter must be 'sent' or 'received'.")
            view = filter_type
        elif applicant_id:
            if applicant_id != "me" and applicant_id != str(user.id):
                raise ForbiddenError("You can only view your own applications.")
            view = "mine"
        elif project_id:
            project = self.projects.find_one(project_id)
            if project.owner_id != user.id:
                raise ForbiddenError("You can only view applications for projects you own.")
            view = "project"
        else:
            raise BadRequestError(
                "Please specify a filter type: filter=sent|received, applicant_id=me or project_id."
            )
        return self.repo.search(user.id, view, status=status, project_id=project_id, skip=skip, take=take)

    def find_one(self, application_id: uuid.UUID, user: models.User) -> models.Application:
        application = self.repo.get(application_id)
        if not application:
            raise NotFoundError(f"Application with ID {application_id} not found")
        is_applicant = application.applicant_id == user.id
        is_owner = application.project.owner_id == user.id
        if not (is_applicant or (is_owner and application.status == models.ApplicationStatus.PENDING)):
            raise ForbiddenError("You do not have permission to view this application.")
        return application

    def update_status(
        self, application_id: uuid.UUID, user: models.User, status: models.ApplicationStatus
    ) -> models.Application:
        """Accept or decline; acceptance also creates the project membership."""
        if status not in (models.ApplicationStatus.ACCEPTED, models.ApplicationStatus.DECLINED):
            raise BadRequestError("Status must be Accepted or Declined.")
        application = self.repo.get(application_id)
        if not application:
            raise NotFoundError(f"Application with ID {application_id} not found")
        project = application.project
        if application.status == models.ApplicationStatus.PENDING:
            if project.owner_id != user.id:
                raise ForbiddenError("Only the project owner can accept or decline this application.")
        elif application.status == models.ApplicationStatus.INVITED:
            if application.applicant_id != user.id:
                raise ForbiddenError("Only the invited user can accept or decline this invitation.")
        else:
            raise BadRequestError(f"Application has already been {application.status.value.lower()}.")

        application.status = status
        related = []
        if status == models.ApplicationStatus.ACCEPTED:
            if self.membership_repo.get(application.applicant_id, project.id) is None:
                related.append(
                    models.ProjectMembership(
                        user_id=application.applicant_id,
                        project_id=project.id,
                        role=_membership_role(application.role_applied_for),
                    )
                )
        try:
            application = self.repo.save(application, *related)
        except IntegrityError:
            raise ConflictError("The applicant is already a member of this project.")
        logger.info("application_decided id=%s status=%s by=%s", application.id, status.value, user.id)
        return application


class BookmarkService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.BookmarkRepository(session)
        self.projects = ProjectService(session)

    def find_all(self, user: models.User) -> List[models.Bookmark]:
        return self.repo.list_for_user(user.id)

    def add(self, user: models.User, project_id: uuid.UUID) -> models.Bookmark:
        """Bookmark a project; bookmarking twice returns the existing row."""
        self.projects.find_one(project_id)
        existing = self.repo.get_for(user.id, project_id)
        if existing:
            return existing
        try:
            return self.repo.create(models.Bookmark(user_id=user.id, project_id=project_id))
        except IntegrityError:
            logger.warning("bookmark insert race user_id=%s project_id=%s; re-reading", user.id, project_id)
            existing = self.repo.get_for(user.id, project_id)
            if existing is None:
                raise ConflictError("Could not bookmark project; please retry.")
            return existing

    def remove(self, user: models.User, project_id: uuid.UUID) -> None:
        bookmark = self.repo.get_for(user.id, project_id)
        if not bookmark:
            raise NotFoundError(f"Bookmark for project {project_id} not found")
        self.repo.delete(bookmark)


RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a helpful assistant that matches university students with collaborative projects. "
    "Answer with JSON only."
)
MAX_CANDIDATES = 50
MAX_RECOMMENDATIONS = 5
MAX_REASONS = 2


def _truncate(text: Optional[str], limit: int = 200) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def build_recommendation_prompt(profile: models.UserProfile, projects: List[models.Project]) -> str:
    """Render the user profile and candidate projects into the model prompt."""
    skills = ", ".join(s.name for s in profile.skills) or "None specified"
    interests = ", ".join(i.name for i in profile.interests) or "None specified"
    experience = profile.bio or profile.signup_experience or "No experience description provided."
    candidates = [
        {
            "id": str(p.id),
            "title": p.title,
            "description": _truncate(p.description),
            "required_skills": p.get_required_skills_list(),
            "tags": p.get_tags_list(),
        }
        for p in projects
    ]
    return (
        "Recommend projects for this student.\n\n"
        f"Skills: {skills}\n"
        f"Interests: {interests}\n"
        f"Experience: {experience}\n\n"
        f"Available projects (JSON):\n{json.dumps(candidates, indent=2)}\n\n"
        f"Pick the top {MAX_RECOMMENDATIONS} projects that best match the student's skills and interests. "
        "For each one give 1-2 short keyword reasons (e.g. \"React\", \"Healthcare\"). "
        'Respond with a JSON array only, like [{"project_id": "<id>", "reasons": ["keyword"]}].'
    )


class RecommendationService:
    def __init__(self, session: Session, client: llm.LLMClient):
        self.session = session
        self.client = client
        self.profile_repo = repositories.ProfileRepository(session)
        self.project_repo = repositories.ProjectRepository(session)

    def recommend(self, user: models.User) -> List[Dict]:
        """Return up to five `{project, reasons}` suggestions for `user`."""
        if not self.client.enabled:
            logger.warning("GEMINI_API_KEY is not configured; returning no recommendations")
            return []
        profile = self.profile_repo.get_by_user_id(user.id)
        if not profile:
            logger.warning("no profile for user %s; returning no recommendations", user.id)
            return []
        candidates = self.project_repo.list_candidates_for(user.id, limit=MAX_CANDIDATES)
        if not candidates:
            return []

        prompt = build_recommendation_prompt(profile, candidates)
        try:
            raw = self.client.complete(RECOMMENDATION_SYSTEM_PROMPT, prompt)
        except llm.LLMError as e:
            logger.error("recommendation request failed for user %s: %s", user.id, e)
            raise RecommendationError("Failed to get recommendations from AI service.")
        try:
            parsed = llm.extract_json(raw)
        except ValueError:
            logger.error("unparseable recommendation response for user %s: %.200s", user.id, raw)
            raise RecommendationError("Failed to process recommendations from AI.")
        if isinstance(parsed, dict):
            parsed = parsed.get("recommendations")
        if not isinstance(parsed, list):
            logger.error("recommendation response is not a list for user %s", user.id)
            raise RecommendationError("Failed to process recommendations from AI.")

        by_id = {str(p.id): p for p in candidates}
        out = []
        for item in parsed:
            if not isinstance(item, dict):
                continue
            project = by_id.get(str(item.get("project_id") or item.get("projectId") or ""))
            if project is None:
                logger.warning("model recommended unknown project %r", item.get("project_id") or item.get("projectId"))
                continue
            reasons = item.get("reasons") or []
            if not isinstance(reasons, list):
                reasons = [reasons]
            out.append({"project": project, "reasons": [str(r) for r in reasons if r][:MAX_REASONS]})
            if len(out) >= MAX_RECOMMENDATIONS:
                break
        logger.info("recommendations user_id=%s candidates=%d returned=%d", user.id, len(candidates), len(out))
        return out
