"""
Tests for courses, enrollment, assignments and grading.
"""

import pytest

from tests.utils import auth_headers, make_user

COURSE = {"name": "Contracts", "code": "LAW101", "semester": "Fall", "year": 2026}


@pytest.fixture
def course(client, faculty):
    response = client.post("/api/courses", json=COURSE, headers=auth_headers(faculty))
    assert response.status_code == 201
    return response.json()


def create_assignment(client, faculty, course, **overrides):
    body = {
        "course_id": course["id"],
        "title": "Memo 1",
        "due_date": "2099-01-01T00:00:00Z",
        "is_published": True,
    }
    body.update(overrides)
    response = client.post("/api/assignments", json=body, headers=auth_headers(faculty))
    assert response.status_code == 201
    return response.json()


class TestCourses:
    def test_create(self, course, faculty):
        assert course["code"] == "LAW101"
        assert course["professor_id"] == faculty.id
        assert course["is_active"] is True

    def test_duplicate_term(self, client, faculty, course):
        response = client.post("/api/courses", json=COURSE, headers=auth_headers(faculty))
        assert response.status_code == 400

    def test_student_cannot_create(self, client, student):
        response = client.post("/api/courses", json=COURSE, headers=auth_headers(student))
        assert response.status_code == 403

    def test_list_and_get(self, client, course):
        assert [c["id"] for c in client.get("/api/courses").json()] == [course["id"]]
        assert client.get(f"/api/courses/{course['id']}").status_code == 200
        assert client.get("/api/courses/not-a-uuid").status_code == 404

    def test_update_by_professor(self, client, faculty, student, course):
        response = client.put(
            f"/api/courses/{course['id']}", json={"description": "1L"}, headers=auth_headers(faculty)
        )
        assert response.json()["description"] == "1L"

        response = client.put(
            f"/api/courses/{course['id']}", json={"description": "x"}, headers=auth_headers(student)
        )
        assert response.status_code == 403


class TestEnrollment:
    def test_self_enroll_is_idempotent(self, client, student, course):
        url = f"/api/courses/{course['id']}/enroll"
        first = client.post(url, json={"student_id": student.id}, headers=auth_headers(student)).json()
        second = client.post(url, json={"student_id": student.id}, headers=auth_headers(student)).json()
        assert first["id"] == second["id"]
        assert first["status"] == "active"

    def test_cannot_enroll_someone_else(self, client, db_session, roles, student, course):
        other = make_user(db_session, "other@law.edu", role_names=["student"])
        response = client.post(
            f"/api/courses/{course['id']}/enroll",
            json={"student_id": other.id},
            headers=auth_headers(student),
        )
        assert response.status_code == 403

    def test_professor_lists_students(self, client, faculty, student, course):
        client.post(
            f"/api/courses/{course['id']}/enroll",
            json={"student_id": student.id},
            headers=auth_headers(faculty),
        )
        students = client.get(
            f"/api/courses/{course['id']}/students", headers=auth_headers(faculty)
        ).json()
        assert [s["email"] for s in students] == ["student@law.edu"]


class TestAssignments:
    def test_submit_and_grade(self, client, faculty, student, course):
        assignment = create_assignment(client, faculty, course)
        client.post(
            f"/api/courses/{course['id']}/enroll",
            json={"student_id": student.id},
            headers=auth_headers(student),
        )

        response = client.post(
            f"/api/assignments/{assignment['id']}/submit",
            json={"content": "My memo"},
            headers=auth_headers(student),
        )
        assert response.status_code == 200
        submission = response.json()
        assert submission["is_late"] is False
        assert submission["status"] == "submitted"

        # resubmitting replaces the content of the same submission
        response = client.post(
            f"/api/assignments/{assignment['id']}/submit",
            json={"content": "My memo, revised"},
            headers=auth_headers(student),
        )
        assert response.json()["id"] == submission["id"]
        assert response.json()["content"] == "My memo, revised"

        listed = client.get(
            f"/api/assignments/{assignment['id']}/submissions", headers=auth_headers(faculty)
        ).json()
        assert len(listed) == 1

        graded = client.post(
            f"/api/assignments/submissions/{submission['id']}/grade",
            json={"grade": "92.5", "feedback": "Good"},
            headers=auth_headers(faculty),
        ).json()
        assert graded["status"] == "graded"
        assert float(graded["grade"]) == 92.5
        assert graded["graded_by"] == faculty.id

    def test_late_submission_is_flagged(self, client, faculty, student, course):
        assignment = create_assignment(client, faculty, course, due_date="2020-01-01T00:00:00Z")
        client.post(
            f"/api/courses/{course['id']}/enroll",
            json={"student_id": student.id},
            headers=auth_headers(student),
        )
        response = client.post(
            f"/api/assignments/{assignment['id']}/submit",
            json={"content": "Sorry"},
            headers=auth_headers(student),
        )
        assert response.status_code == 200
        assert response.json()["is_late"] is True

    def test_submit_requires_enrollment(self, client, faculty, student, course):
        assignment = create_assignment(client, faculty, course)
        response = client.post(
            f"/api/assignments/{assignment['id']}/submit",
            json={"content": "x"},
            headers=auth_headers(student),
        )
        assert response.status_code == 403

    def test_submit_unpublished(self, client, faculty, student, course):
        assignment = create_assignment(client, faculty, course, is_published=False)
        response = client.post(
            f"/api/assignments/{assignment['id']}/submit",
            json={"content": "x"},
            headers=auth_headers(student),
        )
        assert response.status_code == 400

    def test_students_only_see_published(self, client, faculty, student, course):
        create_assignment(client, faculty, course, title="Published")
        create_assignment(client, faculty, course, title="Draft", is_published=False)

        as_student = client.get(
            f"/api/courses/{course['id']}/assignments", headers=auth_headers(student)
        ).json()
        as_professor = client.get(
            f"/api/courses/{course['id']}/assignments", headers=auth_headers(faculty)
        ).json()
        assert [a["title"] for a in as_student] == ["Published"]
        assert len(as_professor) == 2

    def test_grade_out_of_range(self, client, faculty, course):
        response = client.post(
            "/api/assignments/submissions/00000000-0000-0000-0000-000000000000/grade",
            json={"grade": -1},
            headers=auth_headers(faculty),
        )
        assert response.status_code == 400
