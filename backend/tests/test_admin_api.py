import io
import zipfile

import pytest

from models import db, AssessmentResult, User

from conftest import fresh


@pytest.fixture
def roster(make_user, submit):
    """Three students, two of them assessed."""
    ana = make_user(name="Ana Lopez", email="ana@school.edu")
    ben = make_user(name="Ben Okafor", email="ben@school.edu")
    cy = make_user(name="Cy Young", email="cy@example.com")
    submit(ana, ("social", "social", "creative"))
    submit(ben, ("technical", "technical", "analytical"))
    return ana, ben, cy


@pytest.mark.parametrize("path", [
    "/api/admin/dashboard",
    "/api/admin/students",
    "/api/admin/reports/bulk",
    "/api/admin/analytics/assessments",
    "/api/admin/integrity",
])
def test_admin_routes_are_gated(client, student, auth, path):
    assert client.get(path).status_code == 401
    assert client.get(path, headers=auth(student)).status_code == 403


def test_dashboard_statistics(client, admin, auth, roster):
    body = client.get("/api/admin/dashboard", headers=auth(admin)).get_json()
    assert body["statistics"] == {
        "totalStudents": 3,
        "completedAssessments": 2,
        "pendingAssessments": 1,
        "completionRate": 67,
    }
    assert len(body["recentActivity"]) == 2
    assert {r["user"]["email"] for r in body["recentActivity"]} == {"ana@school.edu", "ben@school.edu"}


def test_dashboard_with_no_students(client, admin, auth):
    stats = client.get("/api/admin/dashboard", headers=auth(admin)).get_json()["statistics"]
    assert stats["totalStudents"] == 0
    assert stats["completionRate"] == 0


def test_student_list_pagination(client, admin, auth, make_user):
    for i in range(12):
        make_user(name=f"Student {i}", email=f"s{i}@example.com")
    first = client.get("/api/admin/students?page=1&limit=5", headers=auth(admin)).get_json()
    assert len(first["students"]) == 5
    assert first["pagination"] == {
        "currentPage": 1, "totalPages": 3, "totalStudents": 12, "hasNext": True, "hasPrev": False,
    }
    last = client.get("/api/admin/students?page=3&limit=5", headers=auth(admin)).get_json()
    assert len(last["students"]) == 2
    assert last["pagination"]["hasNext"] is False
    assert last["pagination"]["hasPrev"] is True
    assert all(s["role"] == "student" for s in first["students"])


def test_student_list_status_filter_and_search(client, admin, auth, roster):
    headers = auth(admin)
    completed = client.get("/api/admin/students?status=completed", headers=headers).get_json()["students"]
    assert {s["email"] for s in completed} == {"ana@school.edu", "ben@school.edu"}
    assert all(s["assessmentResult"]["careerProfile"] for s in completed)

    pending = client.get("/api/admin/students?status=pending", headers=headers).get_json()["students"]
    assert [s["email"] for s in pending] == ["cy@example.com"]

    by_name = client.get("/api/admin/students?search=okaf", headers=headers).get_json()["students"]
    assert [s["name"] for s in by_name] == ["Ben Okafor"]
    by_email = client.get("/api/admin/students?search=SCHOOL.EDU", headers=headers).get_json()
    assert by_email["pagination"]["totalStudents"] == 2


def test_student_detail(client, admin, auth, roster):
    ana = roster[0]
    r = client.get(f"/api/admin/students/{ana.id}", headers=auth(admin))
    assert r.status_code == 200
    student = r.get_json()["student"]
    assert student["assessmentResult"]["careerProfile"]["dominantType"] == "social"
    assert student["levelInfo"]["current"] == 2
    # admins are not students
    assert client.get(f"/api/admin/students/{admin.id}", headers=auth(admin)).status_code == 404


def test_delete_student_cascades(client, admin, auth, roster):
    ana_id = roster[0].id
    r = client.delete(f"/api/admin/students/{ana_id}", headers=auth(admin))
    assert r.status_code == 200
    assert fresh(User, ana_id) is None
    assert AssessmentResult.query.filter_by(user_id=ana_id).count() == 0
    assert AssessmentResult.query.count() == 1
    assert client.delete(f"/api/admin/students/{ana_id}", headers=auth(admin)).status_code == 404


def test_individual_report(client, admin, auth, roster):
    ana, _, cy = roster
    r = client.get(f"/api/admin/students/{ana.id}/report", headers=auth(admin))
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")
    assert "career-report-ana-lopez.pdf" in r.headers["Content-Disposition"]
    missing = client.get(f"/api/admin/students/{cy.id}/report", headers=auth(admin))
    assert missing.status_code == 404


def test_bulk_reports(client, admin, auth, make_user, submit):
    assert client.get("/api/admin/reports/bulk", headers=auth(admin)).status_code == 404

    submit(make_user(name="Ana Lopez", email="ana@school.edu"))
    submit(make_user(name="Ana Lopez", email="ana2@school.edu"))
    make_user(name="Cy Young", email="cy@example.com")

    r = client.get("/api/admin/reports/bulk", headers=auth(admin))
    assert r.status_code == 200
    assert r.mimetype == "application/zip"
    assert "career-reports-bulk-" in r.headers["Content-Disposition"]
    with zipfile.ZipFile(io.BytesIO(r.data)) as zf:
        names = zf.namelist()
        assert len(names) == 2
        assert len(set(names)) == 2
        assert all(zf.read(n).startswith(b"%PDF") for n in names)


def test_analytics(client, admin, auth, roster, make_user, submit):
    submit(make_user(name="Dee", email="dee@example.com"), ("social", "creative", "social"))
    body = client.get("/api/admin/analytics/assessments", headers=auth(admin)).get_json()
    assert body["totalAssessments"] == 3
    assert body["careerTypeDistribution"][0] == {"_id": "social", "count": 2}
    assert {"_id": "technical", "count": 1} in body["careerTypeDistribution"]
    assert sum(d["count"] for d in body["completionTrend"]) == 3


def test_integrity_reports_divergent_users(client, admin, auth, roster, make_user):
    headers = auth(admin)
    assert client.get("/api/admin/integrity", headers=headers).get_json() == {"ok": True, "findings": []}

    ghost = make_user(name="Ghost", email="ghost@example.com")
    ghost.assessment_completed = True
    ghost.assessment_result_id = 4242
    cy = roster[2]
    db.session.add(AssessmentResult(
        user_id=cy.id, responses=[], career_profile={}, dominant_type="social", experience_gained=150,
    ))
    db.session.commit()

    body = client.get("/api/admin/integrity", headers=headers).get_json()
    assert body["ok"] is False
    issues = {f["email"]: f["issue"] for f in body["findings"]}
    assert issues == {
        "ghost@example.com": "completed_without_result",
        "cy@example.com": "result_without_completion",
    }
