"""Tests for /apply, /students and /merit."""
from __future__ import annotations

import pytest

from admissions.app import create_app

pytestmark = pytest.mark.web


# ----------------------------- POST /apply (JSON) -----------------------------
def test_apply_json_created(client, store, submission):
    """Valid JSON submission returns 201 with the stored record."""
    resp = client.post("/apply", json=submission)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["ok"] is True
    assert body["message"].startswith("Application submitted successfully")
    assert body["id"] == body["student"]["id"]
    assert body["applicationId"].startswith("APP")
    assert body["student"]["email"] == "asha.rao@example.com"
    assert body["student"]["marks"] == 91.5
    assert body["student"]["status"] == "pending"
    assert len(store) == 1


def test_apply_json_duplicate_email_any_case(client, store, submission):
    """A second submission with the same email in another case is a 400."""
    assert client.post("/apply", json=submission).status_code == 201

    resp = client.post("/apply", json={**submission, "email": "ASHA.RAO@EXAMPLE.COM"})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "ok": False,
        "field": "email",
        "error": "A student with this email already exists.",
    }
    assert len(store) == 1


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"name": ""}, "name"),
        ({"email": "nope"}, "email"),
        ({"marks": 101}, "marks"),
        ({"marks": "abc"}, "marks"),
        ({"stream": "Medicine"}, "stream"),
    ],
)
def test_apply_json_invalid_field(client, store, submission, overrides, field):
    """Validation failures name the field and store nothing."""
    resp = client.post("/apply", json={**submission, **overrides})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["ok"] is False
    assert body["field"] == field
    assert body["error"]
    assert len(store) == 0


def test_apply_json_store_unavailable(monkeypatch, unavailable_store, submission):
    """A down store gives 503 with the data-unavailable message."""
    monkeypatch.setenv("SECRET_KEY", "x" * 64)
    client = create_app(store=unavailable_store).test_client()

    resp = client.post("/apply", json=submission)

    assert resp.status_code == 503
    body = resp.get_json()
    assert body["ok"] is False
    assert "unavailable" in body["error"]


# ----------------------------- POST /apply (form) -----------------------------
def test_apply_form_success_redirects_to_merit_list(client, store, submission):
    """Form post redirects (303) to the merit page and flashes the application id."""
    resp = client.post("/apply", data=submission)

    assert resp.status_code == 303
    assert resp.headers["Location"].endswith("/merit-list")
    saved = store.find_all()[0]

    page = client.get("/merit-list")
    assert saved.application_id in page.get_data(as_text=True)


def test_apply_form_error_redirects_back_with_flash(client, store, submission):
    """Invalid form post goes back to the form with the message flashed."""
    resp = client.post("/apply", data={**submission, "marks": "150"}, follow_redirects=True)

    assert resp.status_code == 200
    assert "Marks must be between 0 and 100." in resp.get_data(as_text=True)
    assert len(store) == 0


def test_apply_with_accept_json_form_body(client, submission, json_headers):
    """A form body with Accept: application/json gets JSON back."""
    resp = client.post("/apply", data=submission, headers=json_headers)
    assert resp.status_code == 201
    assert resp.get_json()["ok"] is True


# ----------------------------- GET /students -----------------------------
def test_students_lists_everyone(client, submission):
    """All stored applicants are returned in camelCase."""
    client.post("/apply", json=submission)
    client.post("/apply", json={**submission, "email": "other@example.com", "name": "Other"})

    rows = client.get("/students").get_json()

    assert [r["name"] for r in rows] == ["Asha Rao", "Other"]
    assert set(rows[0]) >= {"id", "applicationId", "email", "marks", "stream", "course", "status", "createdAt"}


# ----------------------------- GET /merit -----------------------------
def test_merit_json_ranks_submissions(client):
    """Merit JSON groups by stream and ranks within and across streams."""
    people = [
        {"name": "S1", "email": "s1@example.com", "marks": 80, "stream": "Science"},
        {"name": "S2", "email": "s2@example.com", "marks": 95, "stream": "Science"},
        {"name": "A1", "email": "a1@example.com", "marks": 88, "stream": "Arts"},
        {"name": "C1", "email": "c1@example.com", "marks": 80, "stream": "Commerce"},
    ]
    for p in people:
        assert client.post("/apply", json=p).status_code == 201

    body = client.get("/merit").get_json()

    assert body["ok"] is True
    assert [e["name"] for e in body["Science"]] == ["S2", "S1"]
    assert [e["streamRank"] for e in body["Science"]] == [1, 2]
    assert [e["name"] for e in body["overall"]] == ["S2", "A1", "S1", "C1"]
    assert [e["overallRank"] for e in body["overall"]] == [1, 2, 3, 4]
    assert body["stats"]["totalCount"] == 4
    assert body["stats"]["streamCounts"] == {"Science": 2, "Arts": 1, "Commerce": 1}
    assert body["stats"]["averageMarks"] == 85.75


def test_merit_json_empty(client):
    """No applicants: empty lists and zeroed stats."""
    body = client.get("/merit").get_json()
    assert body["Science"] == body["Arts"] == body["Commerce"] == body["overall"] == []
    assert body["stats"]["totalCount"] == 0
    assert body["stats"]["averageMarks"] == 0


def test_merit_status_filter(client, store, submission):
    """Approved applicants drop out by default and come back with ?status=all."""
    client.post("/apply", json=submission)
    saved = store.find_all()[0]
    store.update_status(saved.id, "approved")

    assert client.get("/merit").get_json()["overall"] == []
    assert len(client.get("/merit?status=all").get_json()["overall"]) == 1
    assert len(client.get("/merit?status=approved").get_json()["overall"]) == 1


def test_merit_bad_status_filter(client):
    """Unknown status in the filter is a 400."""
    resp = client.get("/merit?status=waitlisted")
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "status"


def test_merit_store_unavailable(monkeypatch, unavailable_store):
    """Store outage on /merit is a 503, not an empty list."""
    monkeypatch.setenv("SECRET_KEY", "x" * 64)
    client = create_app(store=unavailable_store).test_client()
    resp = client.get("/merit")
    assert resp.status_code == 503
    assert resp.get_json()["ok"] is False


@pytest.mark.parametrize("body", [["not", "an", "object"], "x", 42])
def test_apply_json_body_must_be_an_object(client, store, body):
    """A JSON list or scalar is rejected with a 400, not a server error."""
    resp = client.post("/apply", json=body)

    assert resp.status_code == 400
    payload = resp.get_json()
    assert payload["ok"] is False
    assert payload["field"] == "body"
    assert len(store) == 0
