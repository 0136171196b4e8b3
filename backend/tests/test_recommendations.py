import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from openai import OpenAIError

from project_matcher import llm
from project_matcher.config import settings
from project_matcher.main import app
from project_matcher.routers import recommendations

client = TestClient(app)


class FakeLLM:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    @property
    def enabled(self):
        return True

    def complete(self, system_prompt, user_prompt):
        self.prompts.append(user_prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    recommendations.rate_limiter.reset()
    yield
    recommendations.rate_limiter.reset()


def _use(monkeypatch, fake):
    monkeypatch.setattr("project_matcher.llm.get_client", lambda: fake)
    return fake


def test_recommendations_empty_without_api_key(monkeypatch, new_user, new_project):
    monkeypatch.setattr(llm, "_client", None)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    new_project(new_user())
    user = new_user()
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == []


def test_recommendations_parse_model_reply(monkeypatch, new_user, new_project):
    owner, user = new_user(), new_user()
    client.patch("/profiles/me", headers=user["headers"], json={"skills": ["React"], "bio": "Frontend dev"})
    good = new_project(owner, title="React dashboard", required_skills=["React"])
    other = new_project(owner, title="Robot arm")
    reply = [
        {"project_id": good["id"], "reasons": ["React", "Dashboards", "Frontend"]},
        {"projectId": other["id"], "reasons": "Hardware"},
        {"project_id": "00000000-0000-0000-0000-000000000000", "reasons": ["ghost"]},
        "not an object",
    ]
    fake = _use(monkeypatch, FakeLLM("```json\n" + json.dumps(reply) + "\n```"))

    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 200, r.text
    body = r.json()
    assert [item["project"]["id"] for item in body] == [good["id"], other["id"]]
    assert body[0]["reasons"] == ["React", "Dashboards"]
    assert body[1]["reasons"] == ["Hardware"]
    assert body[0]["project"]["owner"]["id"] == owner["id"]

    prompt = fake.prompts[0]
    assert "Skills: React" in prompt
    assert "Experience: Frontend dev" in prompt
    assert good["id"] in prompt


def test_recommendations_exclude_own_and_joined_projects(monkeypatch, new_user, new_project, add_member):
    owner, user = new_user(), new_user()
    own = new_project(user)
    joined = new_project(owner)
    add_member(owner, joined, user)
    open_project = new_project(owner)
    fake = _use(monkeypatch, FakeLLM(json.dumps({"recommendations": [
        {"project_id": own["id"], "reasons": ["mine"]},
        {"project_id": joined["id"], "reasons": ["joined"]},
        {"project_id": open_project["id"], "reasons": ["open"]},
    ]})))

    r = client.get("/recommendations/projects", headers=user["headers"])
    assert [item["project"]["id"] for item in r.json()] == [open_project["id"]]
    assert own["id"] not in fake.prompts[0]
    assert joined["id"] not in fake.prompts[0]


def test_recommendations_cap_at_five(monkeypatch, new_user, new_project):
    owner, user = new_user(), new_user()
    projects = [new_project(owner) for _ in range(6)]
    _use(monkeypatch, FakeLLM(json.dumps([{"project_id": p["id"], "reasons": ["x"]} for p in projects])))
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert len(r.json()) == 5


def test_recommendations_unparseable_reply(monkeypatch, new_user, new_project):
    new_project(new_user())
    user = new_user()
    _use(monkeypatch, FakeLLM("Sure! Here are some projects you might like."))
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to process recommendations from AI."

    _use(monkeypatch, FakeLLM(json.dumps({"project_id": "x"})))
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 500


def test_recommendations_upstream_failure(monkeypatch, new_user, new_project):
    new_project(new_user())
    user = new_user()
    _use(monkeypatch, FakeLLM(error=llm.LLMError("timeout")))
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to get recommendations from AI service."


def test_recommendations_rate_limited(monkeypatch, new_user, new_project):
    monkeypatch.setattr(settings, "RECOMMENDATION_RATE_LIMIT_PER_MIN", 1)
    new_project(new_user())
    user, other = new_user(), new_user()
    _use(monkeypatch, FakeLLM("[]"))

    assert client.get("/recommendations/projects", headers=user["headers"]).status_code == 200
    r = client.get("/recommendations/projects", headers=user["headers"])
    assert r.status_code == 429
    assert int(r.headers["Retry-After"]) >= 1
    # the limit is per user
    assert client.get("/recommendations/projects", headers=other["headers"]).status_code == 200


def test_llm_client_mock_mode():
    c = llm.LLMClient(api_key=None)
    assert c.enabled is False
    with pytest.raises(llm.LLMError):
        c.complete("system", "user")
    with pytest.raises(ValueError):
        llm.LLMClient(api_key=None, temperature=3.0)


def _fake_openai(create):
    def factory(api_key, base_url):
        return SimpleNamespace(
            api_key=api_key,
            base_url=base_url,
            chat=SimpleNamespace(completions=SimpleNamespace(create=create)),
        )
    return factory


def test_llm_client_complete(monkeypatch):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        message = SimpleNamespace(content='[{"project_id": "p1"}]')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    monkeypatch.setattr("project_matcher.llm.OpenAI", _fake_openai(create))
    c = llm.LLMClient(api_key="key", model="gemini-test")
    assert c.enabled
    assert c.client.base_url == settings.GEMINI_BASE_URL
    assert c.complete("sys", "hello") == '[{"project_id": "p1"}]'
    assert calls[0]["model"] == "gemini-test"
    assert calls[0]["messages"][1] == {"role": "user", "content": "hello"}


def test_llm_client_maps_errors(monkeypatch):
    def failing(**kwargs):
        raise OpenAIError("quota exceeded")

    monkeypatch.setattr("project_matcher.llm.OpenAI", _fake_openai(failing))
    with pytest.raises(llm.LLMError):
        llm.LLMClient(api_key="key").complete("sys", "hello")

    def empty(**kwargs):
        return SimpleNamespace(choices=[])

    monkeypatch.setattr("project_matcher.llm.OpenAI", _fake_openai(empty))
    with pytest.raises(llm.LLMError):
        llm.LLMClient(api_key="key").complete("sys", "hello")


def test_get_client_is_cached(monkeypatch):
    monkeypatch.setattr(llm, "_client", None)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    assert llm.get_client() is llm.get_client()


def test_extract_json():
    assert llm.extract_json('```json\n[{"a": 1}]\n```') == [{"a": 1}]
    assert llm.extract_json('```\n{"a": 1}\n```') == {"a": 1}
    assert llm.extract_json('  [1, 2] ') == [1, 2]
    with pytest.raises(ValueError):
        llm.extract_json("no json here")
