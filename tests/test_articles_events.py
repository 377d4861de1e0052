"""
Tests for law review articles and events.
"""

from lawrepo.models.system import AuditLog
from tests.utils import auth_headers


def create_article(client, user, **overrides):
    body = {"title": "Originalism Revisited", "abstract": "A fresh look", "keywords": ["constitution"]}
    body.update(overrides)
    response = client.post("/api/articles", json=body, headers=auth_headers(user))
    assert response.status_code == 201
    return response.json()


class TestArticles:
    def test_new_article_is_private_draft(self, client, student):
        article = create_article(client, student)
        assert article["status"] == "draft"
        assert client.get(f"/api/articles/{article['id']}").status_code == 404
        assert client.get(f"/api/articles/{article['id']}", headers=auth_headers(student)).status_code == 200
        assert client.get("/api/articles").json() == []

    def test_workflow_to_publication(self, client, db_session, student, faculty, admin):
        article = create_article(client, student)
        url = f"/api/articles/{article['id']}/status"

        submitted = client.patch(url, json={"status": "submitted"}, headers=auth_headers(student)).json()
        assert submitted["submission_date"] is not None

        response = client.patch(url, json={"status": "under_review"}, headers=auth_headers(faculty))
        assert response.status_code == 200

        response = client.patch(url, json={"status": "published"}, headers=auth_headers(student))
        assert response.status_code == 403

        published = client.patch(url, json={"status": "published"}, headers=auth_headers(admin)).json()
        assert published["publication_date"] is not None

        assert [a["id"] for a in client.get("/api/articles").json()] == [article["id"]]
        assert client.get(f"/api/articles/{article['id']}").status_code == 200
        found = client.get("/api/articles", params={"search": "originalism"}).json()
        assert len(found) == 1
        assert db_session.query(AuditLog).filter(AuditLog.action == "article_status_changed").count() == 3

    def test_invalid_status(self, client, student):
        article = create_article(client, student)
        response = client.patch(
            f"/api/articles/{article['id']}/status", json={"status": "archived"}, headers=auth_headers(student)
        )
        assert response.status_code == 400

    def test_only_author_edits(self, client, student, faculty):
        article = create_article(client, student)
        response = client.put(
            f"/api/articles/{article['id']}", json={"title": "New title"}, headers=auth_headers(faculty)
        )
        assert response.status_code == 403
        response = client.put(
            f"/api/articles/{article['id']}", json={"title": "New title"}, headers=auth_headers(student)
        )
        assert response.json()["title"] == "New title"

    def test_versions_are_numbered(self, client, student):
        article = create_article(client, student)
        url = f"/api/articles/{article['id']}/versions"
        headers = auth_headers(student)
        client.post(url, json={"content": "v1"}, headers=headers)
        client.post(url, json={"content": "v2", "changes_summary": "edits"}, headers=headers)

        versions = client.get(url, headers=headers).json()
        assert [v["version_number"] for v in versions] == [2, 1]

    def test_mine(self, client, student, faculty):
        create_article(client, student)
        create_article(client, faculty, title="Other")
        mine = client.get("/api/articles/mine", headers=auth_headers(student)).json()
        assert [a["title"] for a in mine] == ["Originalism Revisited"]


class TestEvents:
    EVENT = {"title": "Moot Court Finals", "start_date": "2099-03-01T18:00:00Z", "location": "Room 101"}

    def test_create_requires_permission(self, client, student):
        response = client.post("/api/events", json=self.EVENT, headers=auth_headers(student))
        assert response.status_code == 403

    def test_upcoming_excludes_past_and_private(self, client, faculty):
        headers = auth_headers(faculty)
        client.post("/api/events", json=self.EVENT, headers=headers)
        client.post(
            "/api/events",
            json={"title": "Orientation", "start_date": "2020-08-20T09:00:00Z"},
            headers=headers,
        )
        client.post(
            "/api/events",
            json={"title": "Faculty Retreat", "start_date": "2099-05-01T09:00:00Z", "is_public": False},
            headers=headers,
        )

        titles = [e["title"] for e in client.get("/api/events").json()]
        assert titles == ["Moot Court Finals"]

    def test_register_is_idempotent(self, client, faculty, student):
        event = client.post("/api/events", json=self.EVENT, headers=auth_headers(faculty)).json()
        url = f"/api/events/{event['id']}/register"

        first = client.post(url, headers=auth_headers(student)).json()
        second = client.post(url, headers=auth_headers(student)).json()
        assert first["id"] == second["id"]
        assert first["attendance_status"] == "registered"

        registrations = client.get(
            f"/api/events/{event['id']}/registrations", headers=auth_headers(faculty)
        ).json()
        assert len(registrations) == 1

        response = client.get(
            f"/api/events/{event['id']}/registrations", headers=auth_headers(student)
        )
        assert response.status_code == 403

    def test_unknown_event(self, client):
        assert client.get("/api/events/00000000-0000-0000-0000-000000000000").status_code == 404
