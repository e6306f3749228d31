"""HTTP tests: routing, session-based actor resolution and error mapping."""
from typing import Any, Dict, NamedTuple

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_backend
from app.models.domain import Account, new_id
from app.models.enums import Role
from app.repositories.memory import reset_memory_store
from app.repositories.registry import build_backend
from app.services.identity import hash_password

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


class SignedIn(NamedTuple):
    """An account plus the client holding its session cookie."""
    account: Dict[str, Any]
    http: TestClient

    @property
    def id(self):
        return self.account["id"]


def signup(http, email, name, role="reporter"):
    response = http.post("/api/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "name": name,
        "department": "Campus",
        "role": role,
    })
    assert response.status_code == 201, response.text
    return SignedIn(response.json(), http)


def login(http, email, password=PASSWORD):
    response = http.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return SignedIn(response.json(), http)


@pytest.fixture
def new_client(client):
    """Extra clients on the same app, each with its own cookie jar."""
    opened = []

    def _open():
        http = TestClient(client.app)
        opened.append(http)
        return http

    yield _open
    for http in opened:
        http.close()


@pytest.fixture
def accounts(new_client, db_session):
    reporter = signup(new_client(), "john.student@university.edu", "John Anderson")
    staff = signup(new_client(), "prof.williams@university.edu", "Dr. Robert Williams", role="staff")
    admin = Account(
        id=new_id("user"),
        email="admin@university.edu",
        name="Sarah Mitchell",
        role=Role.ADMIN,
        password_hash=PASSWORD_HASH
    )
    db_session.add(admin)
    db_session.commit()
    return {"reporter": reporter, "staff": staff, "admin": login(new_client(), "admin@university.edu")}


@pytest.fixture
def issue(accounts):
    response = accounts["reporter"].http.post("/api/issues", json={
        "title": "Broken AC",
        "description": "No cooling in the reading hall",
        "category": "maintenance",
        "priority": "high",
        "location_name": "Main Library",
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_login_and_me(self, new_client, accounts):
        session = login(new_client(), "JOHN.student@university.edu")
        assert session.id == accounts["reporter"].id

        me = session.http.get("/api/me")
        assert me.json()["name"] == "John Anderson"

    def test_signup_signs_in(self, accounts):
        assert accounts["staff"].http.get("/api/me").json()["role"] == "staff"

    def test_bad_login(self, client, accounts):
        response = client.post("/api/auth/login", json={"email": "john.student@university.edu", "password": "nope"})
        assert response.status_code == 401
        assert client.get("/api/me").status_code == 401

    def test_missing_session_is_401(self, client):
        assert client.get("/api/issues").status_code == 401

    def test_logout_ends_session(self, accounts):
        http = accounts["reporter"].http
        assert http.post("/api/auth/logout").status_code == 204
        assert http.get("/api/me").status_code == 401

    def test_duplicate_registration_is_400(self, client, accounts):
        response = client.post("/api/auth/register", json={
            "email": "John.Student@university.edu",
            "password": PASSWORD,
            "name": "Copy",
        })
        assert response.status_code == 400

    def test_admin_self_registration_is_403(self, client):
        response = client.post("/api/auth/register", json={
            "email": "boss@university.edu",
            "password": PASSWORD,
            "name": "Boss",
            "role": "admin",
        })
        assert response.status_code == 403


class TestForgedIdentity:
    """
    INVARIANT: the caller is whoever the signed session says; a known account id
    sent any other way grants nothing.
    """

    def test_user_id_header_is_not_a_credential(self, client, accounts, issue):
        staff_id = accounts["staff"].id

        response = client.put(f"/api/issues/{issue['id']}/status", headers={"X-User-Id": staff_id}, json={"status": "closed"})
        assert response.status_code == 401

    def test_reporter_cannot_act_with_a_staff_id_seen_in_comments(self, accounts, issue):
        reporter = accounts["reporter"].http
        accounts["staff"].http.post(f"/api/issues/{issue['id']}/comments", json={"content": "Looking into it"})
        [comment] = reporter.get(f"/api/issues/{issue['id']}").json()["comments"]

        response = reporter.put(
            f"/api/issues/{issue['id']}/status",
            headers={"X-User-Id": comment["user_id"]},
            json={"status": "closed"}
        )
        assert response.status_code == 403
        assert reporter.get(f"/api/issues/{issue['id']}").json()["status"] == "new"

    def test_tampered_cookie_is_401(self, client, accounts):
        response = client.get("/api/me", headers={"Cookie": f"session={accounts['staff'].id}"})
        assert response.status_code == 401


class TestProfile:

    def test_update_profile(self, accounts):
        http = accounts["reporter"].http
        response = http.put("/api/me", json={"name": "John A. Anderson", "department": "Physics"})

        assert response.status_code == 200
        assert response.json()["name"] == "John A. Anderson"
        assert response.json()["email"] == "john.student@university.edu"
        assert http.get("/api/me").json()["department"] == "Physics"

    def test_blank_name_is_400(self, accounts):
        assert accounts["reporter"].http.put("/api/me", json={"name": "  "}).status_code == 400

    def test_change_password(self, new_client, client, accounts):
        http = accounts["reporter"].http
        response = http.put("/api/me/password", json={"new_password": "brand-new", "confirm_password": "brand-new"})
        assert response.status_code == 204

        login(new_client(), "john.student@university.edu", "brand-new")
        old = client.post("/api/auth/login", json={"email": "john.student@university.edu", "password": PASSWORD})
        assert old.status_code == 401

    @pytest.mark.parametrize("new_password,confirm", [
        ("brand-new", "brand-old"),
        ("short", "short"),
    ])
    def test_rejected_password_change(self, accounts, new_password, confirm):
        response = accounts["reporter"].http.put(
            "/api/me/password",
            json={"new_password": new_password, "confirm_password": confirm}
        )
        assert response.status_code == 400

    def test_staff_listing_is_staff_only(self, accounts):
        assert accounts["reporter"].http.get("/api/staff").status_code == 403

        names = [a["name"] for a in accounts["staff"].http.get("/api/staff").json()]
        assert names == ["Dr. Robert Williams", "Sarah Mitchell"]


class TestIssueFlow:

    def test_submit_returns_new_issue(self, issue, accounts):
        assert issue["status"] == "new"
        assert issue["comments"] == []
        assert issue["reporter_id"] == accounts["reporter"].id

    def test_reporter_cannot_change_status(self, accounts, issue):
        reporter = accounts["reporter"].http
        response = reporter.put(f"/api/issues/{issue['id']}/status", json={"status": "resolved"})
        assert response.status_code == 403

        fetched = reporter.get(f"/api/issues/{issue['id']}")
        assert fetched.json()["status"] == "new"

    def test_status_change_notifies_reporter(self, accounts, issue):
        response = accounts["admin"].http.put(f"/api/issues/{issue['id']}/status", json={"status": "in-progress"})
        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"

        notifications = accounts["reporter"].http.get("/api/notifications").json()
        assert notifications["unread"] == 1
        assert notifications["items"][0]["title"] == "Issue Status Updated"
        assert notifications["items"][0]["type"] == "info"

    def test_unknown_status_rejected(self, accounts, issue):
        response = accounts["admin"].http.put(f"/api/issues/{issue['id']}/status", json={"status": "archived"})
        assert response.status_code == 422

    def test_missing_issue_is_404(self, accounts):
        response = accounts["admin"].http.put("/api/issues/issue-missing/status", json={"status": "closed"})
        assert response.status_code == 404

    def test_internal_comment_hidden_from_reporter(self, accounts, issue):
        response = accounts["staff"].http.post(
            f"/api/issues/{issue['id']}/comments",
            json={"content": "Vendor contacted", "is_internal": True}
        )
        assert response.status_code == 201

        reporter_view = accounts["reporter"].http.get(f"/api/issues/{issue['id']}").json()
        staff_view = accounts["staff"].http.get(f"/api/issues/{issue['id']}").json()
        assert reporter_view["comments"] == []
        assert len(staff_view["comments"]) == 1

    def test_blank_comment_is_400(self, accounts, issue):
        response = accounts["reporter"].http.post(f"/api/issues/{issue['id']}/comments", json={"content": "   "})
        assert response.status_code == 400

    def test_reporter_lists_only_own_issues(self, new_client, accounts, issue):
        other = signup(new_client(), "maya.student@university.edu", "Maya Chen")

        assert other.http.get("/api/issues").json() == []
        assert len(accounts["staff"].http.get("/api/issues").json()) == 1
        assert other.http.get(f"/api/issues/{issue['id']}").status_code == 403

    def test_list_filters(self, accounts, issue):
        http = accounts["staff"].http
        assert len(http.get("/api/issues", params={"search": "library"}).json()) == 1
        assert http.get("/api/issues", params={"status": "closed"}).json() == []
        assert http.get("/api/issues", params={"category": "noise"}).json() == []

    def test_delete_then_delete_again(self, accounts, issue):
        reporter = accounts["reporter"].http
        assert accounts["admin"].http.delete(f"/api/issues/{issue['id']}").status_code == 403
        assert reporter.delete(f"/api/issues/{issue['id']}").status_code == 204
        assert reporter.get(f"/api/issues/{issue['id']}").status_code == 404
        assert reporter.delete(f"/api/issues/{issue['id']}").status_code == 404

    def test_dangling_notification_target_is_404(self, accounts, issue):
        reporter = accounts["reporter"].http
        accounts["admin"].http.put(f"/api/issues/{issue['id']}/status", json={"status": "resolved"})
        [notification] = reporter.get("/api/notifications").json()["items"]

        assert reporter.get(f"/api/notifications/{notification['id']}/target").status_code == 200
        reporter.delete(f"/api/issues/{issue['id']}")
        assert reporter.get(f"/api/notifications/{notification['id']}/target").status_code == 404

    def test_anonymous_reporter_masked_for_staff(self, accounts):
        reporter = accounts["reporter"].http
        response = reporter.post("/api/issues", json={
            "title": "Harassment incident",
            "description": "Witnessed in the cafeteria",
            "category": "harassment",
            "location_name": "Student Center",
            "is_anonymous": True,
        })
        issue_id = response.json()["id"]
        reporter.post(f"/api/issues/{issue_id}/comments", json={"content": "It happened twice"})

        staff_view = accounts["staff"].http.get(f"/api/issues/{issue_id}").json()
        assert staff_view["reporter_name"] == "Anonymous"
        assert staff_view["reporter_id"] is None
        [comment] = staff_view["comments"]
        assert comment["user_name"] == "Anonymous"
        assert comment["user_id"] is None


class TestNotificationsAndStats:

    def test_mark_read_and_read_all(self, accounts, issue):
        admin = accounts["admin"].http
        reporter = accounts["reporter"].http
        admin.put(f"/api/issues/{issue['id']}/status", json={"status": "in-progress"})
        admin.put(f"/api/issues/{issue['id']}/priority", json={"priority": "urgent"})

        items = reporter.get("/api/notifications").json()["items"]
        assert len(items) == 2

        assert reporter.put(f"/api/notifications/{items[0]['id']}/read").status_code == 204
        assert reporter.get("/api/notifications").json()["unread"] == 1

        # Unknown ids are ignored
        assert reporter.put("/api/notifications/notif-missing/read").status_code == 204

        assert reporter.put("/api/notifications/read-all").json() == {"updated": 1}
        assert reporter.get("/api/notifications").json()["unread"] == 0

    def test_cannot_mark_someone_elses_notification(self, accounts, issue):
        accounts["admin"].http.put(f"/api/issues/{issue['id']}/status", json={"status": "closed"})
        [item] = accounts["reporter"].http.get("/api/notifications").json()["items"]

        response = accounts["staff"].http.put(f"/api/notifications/{item['id']}/read")
        assert response.status_code == 403

    def test_statistics_scoped_for_reporter(self, new_client, accounts, issue):
        other = signup(new_client(), "maya.student@university.edu", "Maya Chen")

        assert accounts["reporter"].http.get("/api/statistics").json()["total"] == 1
        assert other.http.get("/api/statistics").json()["total"] == 0
        staff_stats = accounts["staff"].http.get("/api/statistics").json()
        assert staff_stats["by_priority"]["high"] == 1
        assert staff_stats["by_status"]["new"] == 1

    def test_dashboard(self, accounts, issue):
        dashboard = accounts["reporter"].http.get("/api/dashboard").json()
        assert dashboard["statistics"]["total"] == 1
        assert [i["id"] for i in dashboard["recent_issues"]] == [issue["id"]]

    def test_assign_through_api(self, accounts, issue):
        response = accounts["admin"].http.put(
            f"/api/issues/{issue['id']}/assignee",
            json={"assignee_id": accounts["staff"].id}
        )
        assert response.status_code == 200
        assert response.json()["assigned_to"] == accounts["staff"].id
        assert accounts["staff"].http.get("/api/notifications").json()["unread"] == 1


class TestMemoryBackend:

    def test_same_flow_on_memory_backend(self):
        from app.main import app

        reset_memory_store()
        app.dependency_overrides[get_backend] = lambda: build_backend(None, "memory")
        try:
            with TestClient(app) as reporter_http, TestClient(app) as staff_http:
                reporter = signup(reporter_http, "john.student@university.edu", "John Anderson")
                signup(staff_http, "prof.williams@university.edu", "Dr. Robert Williams", role="staff")
                created = reporter.http.post("/api/issues", json={
                    "title": "Broken AC",
                    "description": "No cooling",
                    "category": "maintenance",
                    "location_name": "Library",
                }).json()

                response = staff_http.put(f"/api/issues/{created['id']}/status", json={"status": "resolved"})
                assert response.status_code == 200

                [notification] = reporter.http.get("/api/notifications").json()["items"]
                assert notification["type"] == "success"

                assert staff_http.put("/api/me", json={"department": "Facilities"}).json()["department"] == "Facilities"
        finally:
            app.dependency_overrides.clear()
            reset_memory_store()
