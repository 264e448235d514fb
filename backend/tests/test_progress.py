from conftest import VALID_BODY, FakeStore, bearer
from cardiocheck.api.deps import get_assessment_store
from cardiocheck.main import app


def test_progress_requires_token(client):
    res = client.get("/progress")
    assert res.status_code == 401
    assert res.json()["message"] == "No token provided. Please log in."


def test_progress_lists_only_my_records_newest_first(client, tokens):
    mine = bearer(tokens.issue("u1", "a@x.com"))
    other = bearer(tokens.issue("u2", "b@x.com"))
    client.post("/assessment", json=dict(VALID_BODY, age=50), headers=mine)
    client.post("/assessment", json=dict(VALID_BODY, age=60), headers=other)
    client.post("/assessment", json=dict(VALID_BODY, age=51), headers=mine)

    res = client.get("/progress", headers=mine)
    assert res.status_code == 200
    data = res.json()["data"]
    assert [d["age"] for d in data] == [51, 50]
    assert data[0]["systolicBP"] == 140
    assert set(data[0]) >= {"id", "riskScore", "summary", "createdAt", "diabetes"}


def test_progress_limit(client, tokens):
    mine = bearer(tokens.issue("u1", "a@x.com"))
    for age in (30, 31, 32):
        client.post("/assessment", json=dict(VALID_BODY, age=age), headers=mine)
    res = client.get("/progress?limit=2", headers=mine)
    assert [d["age"] for d in res.json()["data"]] == [32, 31]


def test_progress_limit_out_of_range(client, tokens):
    res = client.get("/progress?limit=0", headers=bearer(tokens.issue("u1", "a@x.com")))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "limit"


def test_progress_limit_not_a_number(client, tokens):
    res = client.get("/progress?limit=abc", headers=bearer(tokens.issue("u1", "a@x.com")))
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_progress_store_failure(client, tokens):
    app.dependency_overrides[get_assessment_store] = lambda: FakeStore(error=RuntimeError("db down"))
    res = client.get("/progress", headers=bearer(tokens.issue("u1", "a@x.com")))
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Failed to load progress data."}
