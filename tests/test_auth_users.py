"""
Tests for registration, login and role-based permissions.
"""

from lawrepo.core.security import get_password_hash, has_permission, permission_matches
from lawrepo.models.system import AuditLog
from tests.utils import auth_headers, make_user


class TestPermissionMatching:
    def test_wildcards(self):
        assert permission_matches("*", "videos:delete")
        assert permission_matches("articles:*", "articles:publish")
        assert not permission_matches("articles:*", "videos:delete")
        assert permission_matches("videos:upload", "videos:upload")
        assert not permission_matches("videos:upload", "videos:delete")

    def test_has_permission(self):
        assert has_permission(["courses:view", "assignments:*"], "assignments:grade")
        assert not has_permission([], "courses:view")


class TestAuth:
    def test_register_and_login(self, client, roles):
        response = client.post(
            "/api/auth/register",
            json={"email": "ada@law.edu", "password": "s3cret!", "name": "Ada"},
        )
        assert response.status_code == 201
        assert response.json()["roles"] == ["student"]

        response = client.post("/api/auth/login", json={"email": "ada@law.edu", "password": "s3cret!"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "ada@law.edu"
        assert me.json()["last_login"] is not None

    def test_register_duplicate(self, client, student):
        response = client.post(
            "/api/auth/register",
            json={"email": "student@law.edu", "password": "x", "name": "Again"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Email already registered"}

    def test_register_invalid_email(self, client):
        response = client.post(
            "/api/auth/register", json={"email": "not-an-email", "password": "x", "name": "X"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_login_wrong_password(self, client, db_session):
        make_user(db_session, "bob@law.edu", password_hash=get_password_hash("right"))
        response = client.post("/api/auth/login", json={"email": "bob@law.edu", "password": "wrong"})
        assert response.status_code == 401

    def test_token_form(self, client, db_session):
        make_user(db_session, "carol@law.edu", password_hash=get_password_hash("pw"))
        response = client.post("/api/auth/token", data={"username": "carol@law.edu", "password": "pw"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    def test_bad_token(self, client):
        response = client.get("/api/users/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401


class TestUsers:
    def test_update_me(self, client, student):
        response = client.put(
            "/api/users/me", json={"department": "Clinic"}, headers=auth_headers(student)
        )
        assert response.status_code == 200
        assert response.json()["department"] == "Clinic"

    def test_permissions(self, client, faculty):
        body = client.get("/api/users/me/permissions", headers=auth_headers(faculty)).json()
        assert body["roles"] == ["faculty"]
        assert "courses:*" in body["permissions"]

    def test_assign_role(self, client, db_session, admin, student):
        response = client.post(
            f"/api/users/{student.id}/roles",
            json={"role_name": "reviewer"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert sorted(response.json()["roles"]) == ["reviewer", "student"]

        # assigning the same role twice is a no-op
        client.post(
            f"/api/users/{student.id}/roles",
            json={"role_name": "reviewer"},
            headers=auth_headers(admin),
        )
        assert db_session.query(AuditLog).filter(AuditLog.action == "role_assigned").count() == 1

    def test_assign_unknown_role(self, client, admin, student):
        response = client.post(
            f"/api/users/{student.id}/roles",
            json={"role_name": "dean"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    def test_assign_role_forbidden(self, client, faculty, student):
        response = client.post(
            f"/api/users/{student.id}/roles",
            json={"role_name": "admin"},
            headers=auth_headers(faculty),
        )
        assert response.status_code == 403
