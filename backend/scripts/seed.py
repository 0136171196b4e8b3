"""CLI script to fill the backend DB with demo users, projects and activity.
Usage: python scripts/seed.py [--users N] [--projects N] [--seed S] [--reset]

Demo users get `cognito_sub` values of the form `demo-<n>`; in dev mode
(no Cognito pool configured) sign an HS256 token with that `sub` to act
as one of them.
"""
import sys
import argparse
import pathlib
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional
# Ensure `backend/` is on sys.path so `project_matcher` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session, SQLModel
from project_matcher.database import engine, create_db_and_tables
from project_matcher import models, schemas, services
from project_matcher.errors import ServiceError

SKILLS = [
    'React', 'Node.js', 'TypeScript', 'JavaScript', 'HTML', 'CSS', 'Python', 'Django',
    'Flask', 'Java', 'PostgreSQL', 'MongoDB', 'Docker', 'AWS', 'Figma', 'UI Design',
    'UX Research', 'Project Management', 'Agile', 'Marketing', 'Content Writing',
    'Data Analysis', 'Machine Learning', 'Graphic Design', 'Video Editing', 'Swift',
    'Kotlin', 'Unity', 'Go', 'Vue.js', 'Market Research', 'Public Speaking', 'Photography',
]
INTERESTS = [
    'Web Development', 'Mobile Development', 'Game Development', 'Artificial Intelligence',
    'Data Science', 'Cybersecurity', 'Cloud Computing', 'UI/UX Design', 'Digital Marketing',
    'Entrepreneurship', 'Sustainability', 'Education Technology', 'Health Tech',
    'Music Production', 'Film Making', 'Robotics',
]
TAGS = [
    'Design', 'Development', 'Business', 'Community', 'Content & Media', 'Science',
    'Personal Idea', 'Startup Idea', 'Mobile App', 'Web App', 'AI/ML', 'Hardware', 'Social Good',
]
USER_TYPES = ['Undergraduate', 'Graduate', 'Instructor', 'Alumni']
PROGRAMS = [
    'Software Development', 'Data Science', 'Graphic Design', 'Business Administration',
    'Marketing', 'New Media Production', 'Information Technology',
]
MENTOR_REQUESTS = ['looking', 'open', 'one-time', None]
PROJECT_TYPES = ['remote', 'in-person', 'hybrid']
NUM_MEMBERS_OPTIONS = ['1', '2-4', '5-10', '10+']
FIRST_NAMES = ['Ava', 'Noah', 'Mia', 'Liam', 'Zoe', 'Omar', 'Lena', 'Ravi', 'Sara', 'Kai', 'Nina', 'Theo']
LAST_NAMES = ['Chen', 'Singh', 'Garcia', 'Nguyen', 'Khan', 'Smith', 'Rossi', 'Kim', 'Patel', 'Haddad']
PROJECT_WORDS = ['Campus', 'Green', 'Study', 'Market', 'Health', 'Pixel', 'Event', 'Food', 'Code', 'Media']
PROJECT_NOUNS = ['Planner', 'Tracker', 'Hub', 'Finder', 'Companion', 'Board', 'Assistant', 'Map']


def _pick(rng: random.Random, items: List, low: int, high: int) -> List:
    return rng.sample(items, rng.randint(low, min(high, len(items))))


def main(num_users: int = 10, num_projects: int = 12, seed: Optional[int] = None, reset: bool = False):
    """Create demo data through the service layer so every business rule applies.

    Results are printed to stdout for a quick CLI feedback loop.
    """
    rng = random.Random(seed)
    if reset:
        SQLModel.metadata.drop_all(engine)
        print('Dropped all tables')
    create_db_and_tables()

    with Session(engine) as session:
        user_svc = services.UserService(session)
        profile_svc = services.ProfileService(session)
        project_svc = services.ProjectService(session)
        app_svc = services.ApplicationService(session)
        task_svc = services.TaskService(session)
        bookmark_svc = services.BookmarkService(session)

        services.SkillService(session).find_or_create_by_name(SKILLS)
        services.InterestService(session).find_or_create_by_name(INTERESTS)
        print(f'Skills: {len(SKILLS)}, interests: {len(INTERESTS)}')

        users: List[models.User] = []
        for i in range(num_users):
            first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
            user = user_svc.sync(schemas.UserSyncIn(
                cognito_sub=f'demo-{i}',
                email=f'demo{i}@example.com',
                first_name=first,
                last_name=last,
                preferred_username=f'{first.lower()}{i}',
            ))
            profile_svc.complete_signup(user, schemas.CompleteSignupIn(
                user_type=rng.choice(USER_TYPES),
                program=rng.choice(PROGRAMS),
                signup_experience=f'{first} has worked on {rng.randint(1, 5)} team projects.',
                skills=_pick(rng, SKILLS, 2, 6),
                interests=_pick(rng, INTERESTS, 1, 4),
            ))
            users.append(user)
        print(f'Synced users: {len(users)}')
        if not users:
            return

        now = datetime.now(timezone.utc)
        projects: List[models.Project] = []
        for _ in range(num_projects):
            owner = rng.choice(users)
            title = f'{rng.choice(PROJECT_WORDS)} {rng.choice(PROJECT_NOUNS)}'
            start = now + timedelta(days=rng.randint(-30, 30))
            milestones = [
                schemas.MilestoneSeed(title=f'Phase {n + 1}', date=start + timedelta(weeks=2 * (n + 1)))
                for n in range(rng.randint(1, 4))
            ]
            project = project_svc.create(owner, schemas.ProjectCreate(
                title=title,
                description=f'{title} is a student project looking for collaborators.',
                num_of_members=rng.choice(NUM_MEMBERS_OPTIONS),
                project_type=rng.choice(PROJECT_TYPES),
                mentor_request=rng.choice(MENTOR_REQUESTS),
                required_skills=_pick(rng, SKILLS, 1, 5),
                tags=_pick(rng, TAGS, 1, 3),
                start_date=start,
                end_date=start + timedelta(weeks=12),
                milestones=milestones,
            ))
            projects.append(project)
        print(f'Created projects: {len(projects)}')

        accepted = declined = invited = skipped = 0
        for project in projects:
            others = [u for u in users if u.id != project.owner_id]
            owner = user_svc.find_one(project.owner_id)
            for applicant in _pick(rng, others, 0, 4):
                try:
                    if rng.random() < 0.3:
                        app = app_svc.invite(project.id, owner, schemas.InviteUserIn(user_id=applicant.id))
                        invited += 1
                        if rng.random() < 0.5:
                            app_svc.update_status(app.id, applicant, models.ApplicationStatus.ACCEPTED)
                            accepted += 1
                        continue
                    app = app_svc.apply(project.id, applicant, schemas.ApplicationCreate(role_applied_for='Member'))
                    roll = rng.random()
                    if roll < 0.5:
                        app_svc.update_status(app.id, owner, models.ApplicationStatus.ACCEPTED)
                        accepted += 1
                    elif roll < 0.7:
                        app_svc.update_status(app.id, owner, models.ApplicationStatus.DECLINED)
                        declined += 1
                except ServiceError as e:
                    skipped += 1
                    print(f'Skipped application for {project.title}: {e.message}')
        print(f'Applications: accepted {accepted}, declined {declined}, invited {invited}, skipped {skipped}')

        task_count = 0
        for project in projects:
            owner = user_svc.find_one(project.owner_id)
            members = [m.user_id for m in project.memberships]
            for milestone in project.milestones:
                for n in range(rng.randint(0, 3)):
                    task_svc.create(project.id, milestone.id, owner, schemas.TaskIn(
                        name=f'{milestone.title} task {n + 1}',
                        description='Demo task created by the seed script.',
                        status=rng.choice(list(models.TaskStatus)),
                        assignee_id=rng.choice(members + [None]),
                    ))
                    task_count += 1
        print(f'Created tasks: {task_count}')

        bookmark_count = 0
        for user in users:
            for project in _pick(rng, projects, 0, 3):
                bookmark_svc.add(user, project.id)
                bookmark_count += 1
        print(f'Created bookmarks: {bookmark_count}')


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--users', type=int, default=10, help='Number of demo users to sync')
    parser.add_argument('--projects', type=int, default=12, help='Number of demo projects to create')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible data')
    parser.add_argument('--reset', action='store_true', help='Drop all tables before seeding')
    args = parser.parse_args()
    main(num_users=args.users, num_projects=args.projects, seed=args.seed, reset=args.reset)
