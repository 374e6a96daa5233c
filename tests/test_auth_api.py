# =============================================================================
# tests/test_auth_api.py - Authentication Flow Tests
# =============================================================================

from datetime import datetime, timedelta

from tests.conftest import run

REGISTRATION = {
    "name": "  Ada Lovelace ",
    "email": "Ada@Kodr.io",
    "password": "Analytical1",
}


def register(client, **overrides):
    return client.post("/auth/register", json={**REGISTRATION, **overrides})


class TestRegister:
    """POST /auth/register"""

    def test_creates_unverified_user(self, client):
        response = register(client)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        user = body["data"]["user"]
        assert user["name"] == "Ada Lovelace"
        assert user["email"] == "ada@kodr.io"
        assert user["verified"] is False
        assert "password_hash" not in user
        assert len(body["data"]["dev_verification_code"]) == 6

    def test_duplicate_email_conflicts(self, client):
        register(client)
        response = register(client, email="ADA@kodr.io")
        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_weak_password_is_a_validation_error(self, client):
        response = register(client, password="short")
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert any(e["field"].endswith("password") for e in body["errors"])


class TestVerifyAndLogin:
    """Email code -> tokens"""

    def test_login_before_verification_is_refused(self, client):
        register(client)
        response = client.post("/auth/login", json={"email": "ada@kodr.io", "password": "Analytical1"})
        assert response.status_code == 403
        assert response.json()["requires_verification"] is True

    def test_full_flow(self, client):
        code = register(client).json()["data"]["dev_verification_code"]

        verified = client.post("/auth/verify-email", json={"email": "ada@kodr.io", "code": code})
        assert verified.status_code == 200
        tokens = verified.json()["data"]["tokens"]
        assert tokens["token_type"] == "bearer"

        login = client.post("/auth/login", json={"email": "ada@kodr.io", "password": "Analytical1"})
        assert login.status_code == 200
        access = login.json()["data"]["tokens"]["access_token"]

        me = client.get("/auth/verify", headers={"Authorization": f"Bearer {access}"})
        assert me.status_code == 200
        assert me.json()["data"]["user"]["verified"] is True

    def test_wrong_code(self, client):
        code = register(client).json()["data"]["dev_verification_code"]
        wrong = "000000" if code != "000000" else "111111"
        response = client.post("/auth/verify-email", json={"email": "ada@kodr.io", "code": wrong})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid verification code"

    def test_expired_code(self, client, db):
        code = register(client).json()["data"]["dev_verification_code"]
        run(db.users.update_one(
            {"email": "ada@kodr.io"},
            {"$set": {"verification_code_expires_at": datetime.utcnow() - timedelta(minutes=1)}}
        ))
        response = client.post("/auth/verify-email", json={"email": "ada@kodr.io", "code": code})
        assert response.status_code == 400
        assert response.json()["message"] == "Verification code has expired"

    def test_wrong_password(self, client, make_user):
        user, _ = make_user()
        response = client.post("/auth/login", json={"email": user["email"], "password": "Nope12345"})
        assert response.status_code == 401


class TestTokens:
    """Refresh rotation, logout, guarded routes"""

    def test_refresh_rotates_token(self, client, make_user):
        user, _ = make_user()
        tokens = client.post(
            "/auth/login", json={"email": user["email"], "password": "Password123"}
        ).json()["data"]["tokens"]

        first = client.post("/auth/refresh", json={
            "refresh_token": tokens["refresh_token"], "user_id": user["user_id"],
        })
        assert first.status_code == 200

        replay = client.post("/auth/refresh", json={
            "refresh_token": tokens["refresh_token"], "user_id": user["user_id"],
        })
        assert replay.status_code == 401

    def test_logout_invalidates_refresh_token(self, client, make_user):
        user, headers = make_user()
        tokens = client.post(
            "/auth/login", json={"email": user["email"], "password": "Password123"}
        ).json()["data"]["tokens"]
        assert client.post("/auth/logout", headers=headers).status_code == 200

        response = client.post("/auth/refresh", json={
            "refresh_token": tokens["refresh_token"], "user_id": user["user_id"],
        })
        assert response.status_code == 401

    def test_missing_token(self, client):
        response = client.get("/users/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Access denied. No token provided."

    def test_garbage_token(self, client):
        response = client.get("/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token."

    def test_admin_route_refuses_learner(self, client, make_user):
        _, headers = make_user()
        response = client.get("/users/admin/dashboard", headers=headers)
        assert response.status_code == 403


class TestProfile:
    """/users/profile and password changes"""

    def test_update_name(self, client, make_user):
        _, headers = make_user()
        response = client.put("/users/profile", json={"name": "Grace"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["user"]["name"] == "Grace"

    def test_change_password(self, client, make_user):
        user, headers = make_user()
        response = client.put("/users/change-password", json={
            "current_password": "Password123",
            "new_password": "BetterPass9",
            "confirm_password": "BetterPass9",
        }, headers=headers)
        assert response.status_code == 200

        login = client.post("/auth/login", json={"email": user["email"], "password": "BetterPass9"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, make_user):
        _, headers = make_user()
        response = client.put("/users/change-password", json={
            "current_password": "Wrong1234",
            "new_password": "BetterPass9",
            "confirm_password": "BetterPass9",
        }, headers=headers)
        assert response.status_code == 400


class TestAccountDeletion:
    """DELETE /users/account"""

    def test_cascades_to_learning_records(self, client, db, seeded_course, make_user):
        user, headers = make_user()
        client.post(f"/courses/{seeded_course['course']['course_id']}/enroll", headers=headers)
        run(db.leaderboard.insert_one({"user_id": user["user_id"], "total_points": 40}))
        run(db.challenge_submissions.insert_one({"user_id": user["user_id"], "challenge_id": "CHALLENGE_1"}))

        response = client.delete("/users/account", headers=headers)
        assert response.status_code == 200

        for collection in (db.users, db.enrollments, db.leaderboard, db.challenge_submissions):
            assert run(collection.count_documents({"user_id": user["user_id"]})) == 0

        after = client.get("/users/profile", headers=headers)
        assert after.status_code == 401
        assert after.json()["message"] == "Invalid token. User not found."


class TestPremiumAccess:
    """GET /users/premium/access"""

    def test_free_user_is_told_to_upgrade(self, client, make_user):
        _, headers = make_user()
        response = client.get("/users/premium/access", headers=headers)
        assert response.status_code == 403
        assert response.json()["upgrade_required"] is True
        assert response.json()["is_premium"] is False

    def test_active_subscription(self, client, make_user):
        _, headers = make_user(premium_until=datetime.utcnow() + timedelta(days=10))
        data = client.get("/users/premium/access", headers=headers).json()["data"]
        assert data["is_premium"] is True
        assert data["days_until_expiry"] == 10

    def test_expired_subscription_flips_flag_on_read(self, client, db, make_user):
        user, headers = make_user(premium_until=datetime.utcnow() - timedelta(days=1))
        assert run(db.users.find_one({"user_id": user["user_id"]}))["is_premium"] is True

        response = client.get("/users/premium/access", headers=headers)
        assert response.status_code == 403
        assert run(db.users.find_one({"user_id": user["user_id"]}))["is_premium"] is False


class TestAdminUsers:
    """/users/admin/users*"""

    def test_list_filters(self, client, make_user):
        _, admin_headers = make_user(role="admin", name="Admin")
        make_user(name="Grace Hopper")
        make_user(name="Alan Turing", premium_until=datetime.utcnow() + timedelta(days=30))
        register(client)

        def names(**params):
            data = client.get("/users/admin/users", params=params, headers=admin_headers).json()["data"]
            return sorted(u["name"] for u in data["users"])

        assert names() == ["Ada Lovelace", "Admin", "Alan Turing", "Grace Hopper"]
        assert names(role="admin") == ["Admin"]
        assert names(search="grace") == ["Grace Hopper"]
        assert names(is_premium="true") == ["Alan Turing"]
        assert names(verified="false") == ["Ada Lovelace"]

    def test_list_hides_secrets(self, client, make_user):
        _, admin_headers = make_user(role="admin", name="Admin")
        users = client.get("/users/admin/users", headers=admin_headers).json()["data"]["users"]
        assert "password_hash" not in users[0]

    def test_get_user_with_enrollments(self, client, seeded_course, make_user):
        learner, headers = make_user()
        client.post(f"/courses/{seeded_course['course']['course_id']}/enroll", headers=headers)

        data = client.get(
            f"/users/admin/users/{learner['user_id']}", headers=seeded_course["admin_headers"]
        ).json()["data"]
        assert data["user"]["user_id"] == learner["user_id"]
        assert len(data["enrollments"]) == 1

    def test_update_user(self, client, make_user):
        _, admin_headers = make_user(role="admin", name="Admin")
        learner, _ = make_user()

        response = client.put(
            f"/users/admin/users/{learner['user_id']}", json={"role": "admin"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "admin"

        empty = client.put(f"/users/admin/users/{learner['user_id']}", json={}, headers=admin_headers)
        assert empty.status_code == 400
        missing = client.put("/users/admin/users/USER_NOPE", json={"verified": True}, headers=admin_headers)
        assert missing.status_code == 404

    def test_delete_user(self, client, make_user):
        admin, admin_headers = make_user(role="admin", name="Admin")
        learner, _ = make_user()

        assert client.delete(f"/users/admin/users/{learner['user_id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/users/admin/users/{learner['user_id']}", headers=admin_headers).status_code == 404
        assert client.delete(f"/users/admin/users/{admin['user_id']}", headers=admin_headers).status_code == 400
        assert client.delete("/users/admin/users/USER_NOPE", headers=admin_headers).status_code == 404
