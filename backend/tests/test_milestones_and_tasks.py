import uuid

from fastapi.testclient import TestClient

from project_matcher.main import app

client = TestClient(app)


def _milestone(user, project, title="Sprint", date="2031-02-01T00:00:00Z", **extra):
    r = client.post(
        f"/projects/{project['id']}/milestones",
        headers=user["headers"],
        json={"title": title, "date": date, **extra},
    )
    assert r.status_code == 201, r.text
    return r.json()


def _tasks_url(project, milestone):
    return f"/projects/{project['id']}/milestones/{milestone['id']}/tasks"


def test_milestones_require_membership(new_user, new_project):
    owner, outsider = new_user(), new_user()
    project = new_project(owner)

    r = client.get(f"/projects/{project['id']}/milestones", headers=outsider["headers"])
    assert r.status_code == 403
    assert r.json()["detail"] == "You must be a member of this project to access its milestones."
    r = client.post(
        f"/projects/{project['id']}/milestones",
        headers=outsider["headers"],
        json={"title": "x", "date": "2031-01-01T00:00:00Z"},
    )
    assert r.status_code == 403
    assert client.get(f"/projects/{uuid.uuid4()}/milestones", headers=owner["headers"]).status_code == 404


def test_member_can_manage_milestones(new_user, new_project, add_member):
    owner, member = new_user(), new_user()
    project = new_project(owner)
    add_member(owner, project, member)

    late = _milestone(member, project, title="Release", date="2031-06-01T00:00:00Z")
    early = _milestone(member, project, title="Design", date="2031-01-15T00:00:00Z")
    assert late["active"] is False
    assert late["tasks"] == []

    listed = client.get(f"/projects/{project['id']}/milestones", headers=owner["headers"]).json()
    assert [m["id"] for m in listed] == [early["id"], late["id"]]

    r = client.patch(
        f"/projects/{project['id']}/milestones/{late['id']}",
        headers=member["headers"],
        json={"title": "Public release"},
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Public release"

    assert client.delete(f"/projects/{project['id']}/milestones/{early['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(f"/projects/{project['id']}/milestones/{early['id']}", headers=owner["headers"]).status_code == 404


def test_milestone_validation(new_user, new_project):
    owner = new_user()
    project = new_project(owner)
    r = client.post(
        f"/projects/{project['id']}/milestones",
        headers=owner["headers"],
        json={"title": "No date"},
    )
    assert r.status_code == 422
    r = client.post(
        f"/projects/{project['id']}/milestones",
        headers=owner["headers"],
        json={"title": "Bad date", "date": "next tuesday"},
    )
    assert r.status_code == 422


def test_activate_keeps_single_active_milestone(new_user, new_project):
    owner = new_user()
    project = new_project(owner)
    first = _milestone(owner, project, title="One", date="2031-01-01T00:00:00Z", active=True)
    second = _milestone(owner, project, title="Two", date="2031-02-01T00:00:00Z")
    third = _milestone(owner, project, title="Three", date="2031-03-01T00:00:00Z")
    assert first["active"] is True

    r = client.patch(f"/projects/{project['id']}/milestones/{second['id']}/activate", headers=owner["headers"])
    assert r.status_code == 200
    assert r.json()["active"] is True
    listed = client.get(f"/projects/{project['id']}/milestones", headers=owner["headers"]).json()
    assert [m["active"] for m in listed] == [False, True, False]

    # activating through an update or a create goes through the same switch
    r = client.patch(
        f"/projects/{project['id']}/milestones/{third['id']}",
        headers=owner["headers"],
        json={"active": True},
    )
    assert r.json()["active"] is True
    fourth = _milestone(owner, project, title="Four", date="2031-04-01T00:00:00Z", active=True)
    listed = client.get(f"/projects/{project['id']}/milestones", headers=owner["headers"]).json()
    assert [m["id"] for m in listed if m["active"]] == [fourth["id"]]

    r = client.patch(
        f"/projects/{project['id']}/milestones/{fourth['id']}",
        headers=owner["headers"],
        json={"active": False},
    )
    assert r.json()["active"] is False


def test_milestone_must_belong_to_project(new_user, new_project):
    owner = new_user()
    project, other_project = new_project(owner), new_project(owner)
    milestone = _milestone(owner, other_project)
    r = client.get(f"/projects/{project['id']}/milestones/{milestone['id']}", headers=owner["headers"])
    assert r.status_code == 404
    r = client.patch(f"/projects/{project['id']}/milestones/{milestone['id']}/activate", headers=owner["headers"])
    assert r.status_code == 404


def test_task_crud(new_user, new_project):
    owner = new_user()
    project = new_project(owner)
    milestone = _milestone(owner, project)
    url = _tasks_url(project, milestone)

    r = client.post(url, headers=owner["headers"], json={"name": "Wireframes", "description": "Draw screens"})
    assert r.status_code == 201, r.text
    task = r.json()
    assert task["status"] == "To Do"
    assert task["assignee_id"] is None
    second = client.post(url, headers=owner["headers"], json={
        "name": "API",
        "description": "Endpoints",
        "status": "In Progress",
    }).json()

    assert [t["id"] for t in client.get(url, headers=owner["headers"]).json()] == [task["id"], second["id"]]

    r = client.patch(f"{url}/{task['id']}", headers=owner["headers"], json={"status": "Done"})
    assert r.status_code == 200
    assert r.json()["status"] == "Done"
    assert r.json()["name"] == "Wireframes"

    assert client.patch(f"{url}/{task['id']}", headers=owner["headers"], json={"status": "Finished"}).status_code == 422
    assert client.post(url, headers=owner["headers"], json={"name": "No description"}).status_code == 422

    fetched = client.get(f"/projects/{project['id']}/milestones/{milestone['id']}", headers=owner["headers"]).json()
    assert [t["status"] for t in fetched["tasks"]] == ["Done", "In Progress"]

    assert client.delete(f"{url}/{task['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(f"{url}/{task['id']}", headers=owner["headers"]).status_code == 404


def test_task_assignment_rules(new_user, new_project, add_member):
    owner, member, outsider = new_user(), new_user(), new_user()
    project = new_project(owner)
    add_member(owner, project, member)
    milestone = _milestone(owner, project)
    url = _tasks_url(project, milestone)

    r = client.post(url, headers=owner["headers"], json={
        "name": "Docs",
        "description": "Write docs",
        "assignee_id": outsider["id"],
    })
    assert r.status_code == 400
    assert "is not a member of this project" in r.json()["detail"]

    missing = uuid.uuid4()
    r = client.post(url, headers=owner["headers"], json={
        "name": "Docs",
        "description": "Write docs",
        "assignee_id": str(missing),
    })
    assert r.status_code == 404
    assert r.json()["detail"] == f"Assignee user with ID {missing} not found"

    task = client.post(url, headers=owner["headers"], json={"name": "Docs", "description": "Write docs"}).json()
    r = client.patch(f"{url}/{task['id']}/assign", headers=member["headers"], json={"assignee_id": member["id"]})
    assert r.status_code == 200
    assert r.json()["assignee_id"] == member["id"]
    assert r.json()["assignee"]["id"] == member["id"]

    r = client.patch(f"{url}/{task['id']}/assign", headers=owner["headers"], json={"assignee_id": owner["id"]})
    assert r.json()["assignee_id"] == owner["id"]

    r = client.patch(f"{url}/{task['id']}/assign", headers=owner["headers"], json={"assignee_id": outsider["id"]})
    assert r.status_code == 400

    r = client.patch(f"{url}/{task['id']}/assign", headers=owner["headers"], json={"assignee_id": None})
    assert r.status_code == 200
    assert r.json()["assignee_id"] is None
    assert r.json()["assignee"] is None

    r = client.patch(f"{url}/{task['id']}", headers=owner["headers"], json={"assignee_id": outsider["id"]})
    assert r.status_code == 400


def test_tasks_scoped_to_milestone_and_members(new_user, new_project):
    owner, outsider = new_user(), new_user()
    project = new_project(owner)
    m1, m2 = _milestone(owner, project, title="A"), _milestone(owner, project, title="B")
    task = client.post(_tasks_url(project, m1), headers=owner["headers"], json={
        "name": "Only in A",
        "description": "d",
    }).json()

    assert client.get(f"{_tasks_url(project, m2)}/{task['id']}", headers=owner["headers"]).status_code == 404
    assert client.get(_tasks_url(project, m1), headers=outsider["headers"]).status_code == 403

    # tasks go away with their milestone
    assert client.delete(f"/projects/{project['id']}/milestones/{m1['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(f"{_tasks_url(project, m1)}/{task['id']}", headers=owner["headers"]).status_code == 404


def test_milestone_dates_without_timezone(new_user, new_project):
    owner = new_user()
    project = new_project(owner)

    day_only = _milestone(owner, project, title="Day", date="2031-02-01")
    naive = _milestone(owner, project, title="Naive", date="2031-02-01T09:30:00")
    assert day_only["date"].startswith("2031-02-01T00:00:00")
    assert naive["date"].startswith("2031-02-01T09:30:00")

    r = client.patch(
        f"/projects/{project['id']}/milestones/{day_only['id']}",
        headers=owner["headers"],
        json={"date": "2031-03-01", "active": True},
    )
    assert r.status_code == 200, r.text
    assert r.json()["date"].startswith("2031-03-01")
    assert r.json()["active"] is True
