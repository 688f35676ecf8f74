from datetime import datetime, timedelta, timezone

from clearcity.models.achievement import UserAchievement
from clearcity.models.report import Report, ReportStatus
from clearcity.models.user import User, UserRole
from clearcity.services.gamification import award_achievement, FIRST_REPORT
from clearcity.routers.admin import average_resolution_hours
import bootstrap_admin
from conftest import auth_header, image_file


def add_report(db, user_id, created, resolved=None, status=ReportStatus.pending, type="plastic"):
    report = Report(
        user_id=user_id, latitude=1.0, longitude=2.0, type=type, status=status,
        created_at=created, resolved_at=resolved,
    )
    db.add(report)
    db.commit()
    return report


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "timestamp" in r.json()


def test_stats_requires_admin(client, register):
    assert client.get("/api/admin/stats").status_code == 401
    assert client.get("/api/admin/stats", headers=auth_header(register()["token"])).status_code == 403


def test_stats(client, register, submit, admin):
    ana = register()
    register(name="Bob", email="bob@example.com")
    submit(ana["token"], files=image_file())
    second = submit(ana["token"]).json()["report"]["id"]
    submit(ana["token"])
    client.patch(f"/api/reports/{second}", json={"status": "resolved"}, headers=auth_header(ana["token"]))

    stats = client.get("/api/admin/stats", headers=auth_header(admin["token"])).json()
    assert stats["totalUsers"] == 2  # admins are not counted
    assert stats["totalReports"] == 3
    assert {s["status"]: s["count"] for s in stats["reportsByStatus"]} == {"pending": 2, "resolved": 1}
    assert stats["reportsByType"] == [{"type": "Unclassified", "count": 2}, {"type": "glass", "count": 1}]
    today = datetime.now(timezone.utc).date().isoformat()
    assert stats["recentActivity"] == [{"date": today, "count": 3}]
    assert stats["avgResolutionTime"] is not None


def test_average_resolution_ignores_unresolved(db, register):
    user_id = register()["user"]["id"]
    start = datetime(2026, 3, 1, 8, 0)
    add_report(db, user_id, start, start + timedelta(hours=2), ReportStatus.resolved)
    add_report(db, user_id, start, start + timedelta(hours=5), ReportStatus.resolved)
    add_report(db, user_id, start)
    add_report(db, user_id, start, status=ReportStatus.in_progress)
    assert average_resolution_hours(db) == 3.5


def test_average_resolution_without_resolved_reports(client, db, register, admin):
    add_report(db, admin["user"]["id"], datetime(2026, 3, 1, 8, 0))
    assert average_resolution_hours(db) is None
    stats = client.get("/api/admin/stats", headers=auth_header(admin["token"])).json()
    assert stats["avgResolutionTime"] is None


def test_recent_activity_skips_old_reports(client, db, admin):
    old = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=30)
    add_report(db, admin["user"]["id"], old)
    stats = client.get("/api/admin/stats", headers=auth_header(admin["token"])).json()
    assert stats["totalReports"] == 1
    assert stats["recentActivity"] == []


def test_list_users(client, register, submit, admin):
    ana = register()
    submit(ana["token"])
    users = client.get("/api/admin/users", headers=auth_header(admin["token"])).json()
    assert [u["email"] for u in users] == ["admin@example.com", "ana@example.com"]  # by xp
    assert users[1]["total_reports"] == 1
    assert users[1]["resolved_reports"] == 0
    assert users[0]["role"] == "admin"


def test_list_admins(client, register, admin):
    register()
    admins = client.get("/api/admin/admins", headers=auth_header(admin["token"])).json()
    assert [a["email"] for a in admins] == ["admin@example.com"]
    assert set(admins[0]) == {"id", "name", "email", "created_at"}


def test_promote(client, register, admin, db):
    register()
    r = client.post("/api/admin/promote/ana@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    user = db.query(User).filter(User.email == "ana@example.com").one()
    assert (user.role, user.level, user.xp) == (UserRole.admin, 99, 9999)


def test_promote_ignores_email_case(client, register, admin, db):
    register(name="Bob", email="Bob@Example.COM")
    r = client.post("/api/admin/promote/Bob@Example.COM", headers=auth_header(admin["token"]))
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    r = client.post("/api/admin/demote/BOB@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 200
    assert r.json()["role"] == "user"


def test_promote_unknown_user(client, admin):
    r = client.post("/api/admin/promote/ghost@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}


def test_cannot_demote_last_admin(client, admin, db):
    r = client.post("/api/admin/demote/admin@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 400
    assert r.json() == {"error": "Cannot demote the last admin"}
    user = db.query(User).filter(User.email == "admin@example.com").one()
    assert user.role == UserRole.admin


def test_demote_with_two_admins(client, register, admin, db):
    register()
    client.post("/api/admin/promote/ana@example.com", headers=auth_header(admin["token"]))

    r = client.post("/api/admin/demote/ana@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 200
    assert r.json()["role"] == "user"

    user = db.query(User).filter(User.email == "ana@example.com").one()
    # gamification values are not restored
    assert (user.role, user.level, user.xp) == (UserRole.user, 99, 9999)

    # back to a single admin
    again = client.post("/api/admin/demote/admin@example.com", headers=auth_header(admin["token"]))
    assert again.status_code == 400


def test_demote_unknown_email(client, register, admin):
    register()
    client.post("/api/admin/promote/ana@example.com", headers=auth_header(admin["token"]))
    r = client.post("/api/admin/demote/ghost@example.com", headers=auth_header(admin["token"]))
    assert r.status_code == 404
    assert r.json() == {"error": "Admin not found"}


def test_achievement_award_is_idempotent(db, register):
    user_id = register()["user"]["id"]
    assert award_achievement(db, user_id, FIRST_REPORT) is True
    assert award_achievement(db, user_id, FIRST_REPORT) is False
    assert db.query(UserAchievement).filter(UserAchievement.user_id == user_id).count() == 1


def test_bootstrap_admin_script(register, db, capsys):
    register()
    assert bootstrap_admin.main(["bootstrap_admin.py", "ana@example.com"]) == 0
    assert db.query(User).filter(User.email == "ana@example.com").one().role == UserRole.admin
    assert bootstrap_admin.main(["bootstrap_admin.py", "ghost@example.com"]) == 1
    assert bootstrap_admin.main(["bootstrap_admin.py"]) == 2
