import uuid

from fastapi.testclient import TestClient

from project_matcher.main import app

client = TestClient(app)


def test_create_project_with_milestones(new_user):
    owner = new_user()
    r = client.post("/projects", headers=owner["headers"], json={
        "title": "Campus Planner",
        "description": "Plan campus events",
        "required_skills": ["React", "Node.js"],
        "tags": ["Web App"],
        "project_type": "remote",
        "milestones": [
            {"title": "Launch", "date": "2031-03-01T00:00:00Z"},
            {"title": "Kickoff", "date": "2031-01-01T00:00:00Z"},
        ],
    })
    assert r.status_code == 201, r.text
    project = r.json()
    assert project["owner_id"] == owner["id"]
    assert project["required_skills"] == ["React", "Node.js"]
    assert project["tags"] == ["Web App"]
    assert project["owner"]["id"] == owner["id"]
    assert "cognito_sub" not in project["owner"]

    assert len(project["members"]) == 1
    assert project["members"][0]["user_id"] == owner["id"]
    assert project["members"][0]["role"] == "Owner"

    assert [m["title"] for m in project["milestones"]] == ["Kickoff", "Launch"]
    assert not any(m["active"] for m in project["milestones"])


def test_create_project_validation(new_user):
    owner = new_user()
    assert client.post("/projects", headers=owner["headers"], json={"description": "no title"}).status_code == 422
    r = client.post("/projects", headers=owner["headers"], json={
        "title": "Bad milestone",
        "description": "d",
        "milestones": [{"title": "x", "date": "not-a-date"}],
    })
    assert r.status_code == 422
    assert client.post("/projects", json={"title": "t", "description": "d"}).status_code in (401, 403)


def test_create_project_accepts_dates_without_timezone(new_user):
    owner = new_user()
    r = client.post("/projects", headers=owner["headers"], json={
        "title": "Local dates",
        "description": "d",
        "start_date": "2031-01-01T00:00:00",
        "end_date": "2031-06-30",
        "milestones": [{"title": "Kickoff", "date": "2031-02-01"}],
    })
    assert r.status_code == 201, r.text
    project = r.json()
    assert project["start_date"].startswith("2031-01-01")
    assert project["end_date"].startswith("2031-06-30")
    assert project["milestones"][0]["date"].startswith("2031-02-01")

    r = client.patch(f"/projects/{project['id']}", headers=owner["headers"], json={"end_date": "2031-07-31T12:00:00"})
    assert r.status_code == 200, r.text
    assert r.json()["end_date"].startswith("2031-07-31")


def test_get_project_is_public(new_user, new_project):
    owner = new_user()
    project = new_project(owner)
    r = client.get(f"/projects/{project['id']}")
    assert r.status_code == 200
    assert r.json()["title"] == project["title"]

    missing = uuid.uuid4()
    r = client.get(f"/projects/{missing}")
    assert r.status_code == 404
    assert r.json()["detail"] == f"Project with ID {missing} not found"
    assert client.get("/projects/not-a-uuid").status_code == 422


def test_list_projects_filters(new_user, new_project):
    owner = new_user()
    marker = uuid.uuid4().hex[:8]
    skill = f"Rust{marker}"
    p1 = new_project(owner, title=f"Alpha {marker}", required_skills=[skill, "Python"], tags=[f"tag{marker}"])
    p2 = new_project(owner, title="Beta", description=f"mentions {marker} here", required_skills=["Go", skill])
    new_project(owner, title="Gamma", required_skills=[f"{skill}x"])

    r = client.get("/projects", params={"skill": skill.upper()})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert {p["id"] for p in body["projects"]} == {p1["id"], p2["id"]}

    r = client.get("/projects", params={"tag": f"TAG{marker}"})
    assert [p["id"] for p in r.json()["projects"]] == [p1["id"]]

    r = client.get("/projects", params={"search": marker})
    assert {p["id"] for p in r.json()["projects"]} == {p1["id"], p2["id"]}

    r = client.get("/projects", params={"owner_id": owner["id"]})
    assert r.json()["total"] == 3
    # newest first
    assert r.json()["projects"][-1]["id"] == p1["id"]


def test_list_projects_escapes_wildcards(new_user, new_project):
    owner = new_user()
    new_project(owner, title="Plain title")
    r = client.get("/projects", params={"owner_id": owner["id"], "search": "%"})
    assert r.json()["total"] == 0
    r = client.get("/projects", params={"owner_id": owner["id"], "skill": "_ython"})
    assert r.json()["total"] == 0


def test_list_projects_pagination(new_user, new_project):
    owner = new_user()
    for _ in range(3):
        new_project(owner)
    r = client.get("/projects", params={"owner_id": owner["id"], "take": 2})
    assert r.status_code == 200
    assert len(r.json()["projects"]) == 2
    assert r.json()["total"] == 3
    r = client.get("/projects", params={"owner_id": owner["id"], "take": 2, "skip": 2})
    assert len(r.json()["projects"]) == 1

    assert client.get("/projects", params={"take": 0}).status_code == 422
    assert client.get("/projects", params={"take": 101}).status_code == 422
    assert client.get("/projects", params={"skip": -1}).status_code == 422


def test_my_projects(new_user, new_project, add_member):
    owner, member, outsider = new_user(), new_user(), new_user()
    owned = new_project(owner)
    joined = new_project(outsider)
    add_member(outsider, joined, owner)
    new_project(outsider)

    r = client.get("/projects/me", headers=owner["headers"])
    assert r.status_code == 200
    assert {p["id"] for p in r.json()} == {owned["id"], joined["id"]}
    assert client.get("/projects/me", headers=member["headers"]).json() == []


def test_update_project_owner_only(new_user, new_project):
    owner, other = new_user(), new_user()
    project = new_project(owner, required_skills=["Python", "SQL"], tags=["Web App"])

    r = client.patch(f"/projects/{project['id']}", headers=other["headers"], json={"title": "Hijacked"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Only the project owner can update the project."

    r = client.patch(f"/projects/{project['id']}", headers=owner["headers"], json={
        "title": "Renamed",
        "tags": ["AI/ML", "Startup Idea"],
    })
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["tags"] == ["AI/ML", "Startup Idea"]
    assert body["required_skills"] == ["Python", "SQL"]

    r = client.patch(f"/projects/{project['id']}", headers=owner["headers"], json={"required_skills": []})
    assert r.json()["required_skills"] == []


def test_delete_project_cascades(new_user, new_project):
    owner, other = new_user(), new_user()
    project = new_project(owner, milestones=[{"title": "M1", "date": "2031-01-01T00:00:00Z"}])
    assert client.post(f"/users/me/bookmarks/project/{project['id']}", headers=other["headers"]).status_code == 201
    assert client.post(f"/applications/apply/{project['id']}", headers=other["headers"], json={}).status_code == 201

    assert client.delete(f"/projects/{project['id']}", headers=other["headers"]).status_code == 403
    assert client.delete(f"/projects/{project['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(f"/projects/{project['id']}").status_code == 404
    assert client.get("/users/me/bookmarks", headers=other["headers"]).json() == []
    r = client.get("/applications", params={"applicant_id": "me"}, headers=other["headers"])
    assert r.json()["total"] == 0


def test_add_member_rules(new_user, new_project):
    owner, member, other = new_user(), new_user(), new_user()
    project = new_project(owner)
    url = f"/projects/{project['id']}/members"

    r = client.post(url, headers=other["headers"], json={"user_id": member["id"], "role": "Member"})
    assert r.status_code == 403

    r = client.post(url, headers=owner["headers"], json={"user_id": member["id"], "role": "Member"})
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "Member"
    assert r.json()["user"]["id"] == member["id"]

    r = client.post(url, headers=owner["headers"], json={"user_id": member["id"], "role": "Mentor"})
    assert r.status_code == 400
    assert r.json()["detail"] == "User is already a member of this project."

    r = client.post(url, headers=owner["headers"], json={"user_id": other["id"], "role": "Owner"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Project already has an owner."

    r = client.post(url, headers=owner["headers"], json={"user_id": str(uuid.uuid4()), "role": "Member"})
    assert r.status_code == 404

    r = client.post(url, headers=owner["headers"], json={"user_id": other["id"], "role": "Admin"})
    assert r.status_code == 422

    members = client.get(f"/projects/{project['id']}").json()["members"]
    assert [m["user_id"] for m in members] == [owner["id"], member["id"]]


def test_update_member_role_rules(new_user, new_project, add_member):
    owner, member = new_user(), new_user()
    project = new_project(owner)
    add_member(owner, project, member)
    base = f"/projects/{project['id']}/members"

    r = client.patch(f"{base}/{member['id']}", headers=owner["headers"], json={"role": "Mentor"})
    assert r.status_code == 200
    assert r.json()["role"] == "Mentor"

    r = client.patch(f"{base}/{member['id']}", headers=owner["headers"], json={"role": "Owner"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot assign OWNER role to another member."

    r = client.patch(f"{base}/{owner['id']}", headers=owner["headers"], json={"role": "Member"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot change the role of the only owner."

    r = client.patch(f"{base}/{member['id']}", headers=member["headers"], json={"role": "Member"})
    assert r.status_code == 403

    r = client.patch(f"{base}/{uuid.uuid4()}", headers=owner["headers"], json={"role": "Member"})
    assert r.status_code == 404


def test_remove_member_rules(new_user, new_project, add_member):
    owner, member, other, outsider = new_user(), new_user(), new_user(), new_user()
    project = new_project(owner)
    add_member(owner, project, member)
    add_member(owner, project, other)
    base = f"/projects/{project['id']}/members"

    r = client.delete(f"{base}/{member['id']}", headers=outsider["headers"])
    assert r.status_code == 403
    assert r.json()["detail"] == "You do not have permission to remove this member."
    assert client.delete(f"{base}/{member['id']}", headers=other["headers"]).status_code == 403

    # members may leave on their own
    assert client.delete(f"{base}/{member['id']}", headers=member["headers"]).status_code == 204
    assert client.delete(f"{base}/{other['id']}", headers=owner["headers"]).status_code == 204
    assert client.delete(f"{base}/{other['id']}", headers=owner["headers"]).status_code == 404

    r = client.delete(f"{base}/{owner['id']}", headers=owner["headers"])
    assert r.status_code == 400
    assert "only owner" in r.json()["detail"]

    members = client.get(f"/projects/{project['id']}").json()["members"]
    assert [m["user_id"] for m in members] == [owner["id"]]
