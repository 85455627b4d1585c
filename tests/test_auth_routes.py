from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from adminauth.core.database import get_db
from adminauth.deps import get_settings, require_role
from adminauth.models.admin_user import AdminUser
from adminauth.models.password_reset_token import PasswordResetToken
from adminauth.services.tokens import issue_access_token
from tests.fixtures_data import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    CEILING_EMAILS,
    GHOST_EMAIL,
    OTHER_ADMIN_EMAIL,
    OTHER_ADMIN_PASSWORD,
    OVER_CEILING_EMAIL,
    TEST_JWT_SECRET,
)
from tests.support import TEST_SETTINGS, build_client, build_session


def _register(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    return client.post("/api/auth/register", json={"email": email, "password": password})


def _latest_token(db) -> str:
    return db.query(PasswordResetToken).order_by(PasswordResetToken.created_at.desc()).first().token


def test_register_returns_201_then_403_past_ceiling():
    db = build_session()
    client, _ = build_client(db)

    statuses = [_register(client, email).status_code for email in CEILING_EMAILS]
    over = _register(client, OVER_CEILING_EMAIL)

    assert statuses == [201, 201, 201, 201]
    assert over.status_code == 403
    assert over.json()["detail"]["code"] == "limit_exceeded"


def test_register_duplicate_returns_409():
    db = build_session()
    client, _ = build_client(db)
    _register(client)

    response = _register(client)

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "conflict"


def test_missing_fields_return_400_not_422():
    db = build_session()
    client, _ = build_client(db)

    responses = [
        client.post("/api/auth/login", json={"email": ADMIN_EMAIL}),
        client.post("/api/auth/register", json={"password": "x"}),
        client.post("/api/auth/forgot-password", json={}),
        client.post("/api/auth/reset-password", json={"token": "t", "email": ADMIN_EMAIL}),
    ]

    assert [response.status_code for response in responses] == [400, 400, 400, 400]
    assert all(response.json()["detail"]["code"] == "validation_error" for response in responses)


def test_login_returns_token_usable_on_me_endpoint():
    db = build_session()
    client, _ = build_client(db)
    _register(client)

    login = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    token = login.json()["token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert login.status_code == 200
    assert me.status_code == 200
    assert me.json()["email"] == ADMIN_EMAIL
    assert me.json()["role"] == "admin"


def test_login_for_unknown_email_matches_wrong_password_response():
    db = build_session()
    client, _ = build_client(db)
    _register(client)

    unknown = client.post("/api/auth/login", json={"email": GHOST_EMAIL, "password": "x"})
    wrong = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "x"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_login_lockout_returns_403():
    db = build_session()
    client, _ = build_client(db)
    _register(client)

    statuses = [
        client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"}).status_code
        for _ in range(5)
    ]
    locked = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

    assert statuses == [401, 401, 401, 401, 403]
    assert locked.status_code == 403
    assert locked.json()["detail"]["code"] == "too_many_attempts"


def test_forgot_password_response_is_identical_for_known_and_unknown_email():
    db = build_session()
    client, provider = build_client(db)
    _register(client)

    unknown = client.post("/api/auth/forgot-password", json={"email": GHOST_EMAIL})
    known = client.post("/api/auth/forgot-password", json={"email": ADMIN_EMAIL})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    assert len(provider.outbox) == 1


def test_forgot_password_mailer_failure_returns_generic_500():
    class _BrokenProvider:
        name = "broken"

        def send(self, *, to_address, subject, html_body):
            from adminauth.mail.base import MailDeliveryError

            raise MailDeliveryError("connection refused to smtp.internal:587")

    db = build_session()
    client, _ = build_client(db, provider=_BrokenProvider())
    _register(client)

    response = client.post("/api/auth/forgot-password", json={"email": ADMIN_EMAIL})

    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Internal server error"
    assert "smtp" not in response.text


def test_reset_password_flow_over_http():
    db = build_session()
    client, _ = build_client(db)
    _register(client)
    client.post("/api/auth/forgot-password", json={"email": ADMIN_EMAIL})
    token = _latest_token(db)

    reset = client.post(
        "/api/auth/reset-password",
        json={"token": token, "email": ADMIN_EMAIL, "newPassword": "fresh-pw"},
    )
    reuse = client.post(
        "/api/auth/reset-password",
        json={"token": token, "email": ADMIN_EMAIL, "newPassword": "again"},
    )
    old_login = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    new_login = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "fresh-pw"})

    assert reset.status_code == 200
    assert reuse.status_code == 400
    assert reuse.json()["detail"]["code"] == "invalid_or_expired_token"
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_reset_password_with_other_email_returns_400_and_keeps_password():
    db = build_session()
    client, _ = build_client(db)
    _register(client)
    _register(client, OTHER_ADMIN_EMAIL, OTHER_ADMIN_PASSWORD)
    client.post("/api/auth/forgot-password", json={"email": ADMIN_EMAIL})

    response = client.post(
        "/api/auth/reset-password",
        json={"token": _latest_token(db), "email": OTHER_ADMIN_EMAIL, "newPassword": "hijack"},
    )
    login = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

    assert response.status_code == 400
    assert login.status_code == 200


def test_me_rejects_missing_invalid_and_orphaned_tokens():
    db = build_session()
    client, _ = build_client(db)
    forged = issue_access_token({"id": "x"}, secret="not-the-secret")
    orphan = issue_access_token({"id": "deleted-admin", "email": GHOST_EMAIL}, secret=TEST_JWT_SECRET)

    missing = client.get("/api/auth/me")
    invalid = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
    orphaned = client.get("/api/auth/me", headers={"Authorization": f"Bearer {orphan}"})

    assert [missing.status_code, invalid.status_code, orphaned.status_code] == [401, 401, 401]


def test_require_role_denies_other_roles():
    db = build_session()
    admin = AdminUser(email=ADMIN_EMAIL, password_hash="x", role="editor", slot=1)
    db.add(admin)
    db.commit()

    app = FastAPI()

    @app.get("/owners-only")
    def owners_only(user: AdminUser = Depends(require_role(["owner"]))):
        return {"id": user.id}

    @app.get("/editors")
    def editors(user: AdminUser = Depends(require_role(["Editor"]))):
        return {"id": user.id}

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    client = TestClient(app)
    headers = {"Authorization": f"Bearer {issue_access_token({'id': admin.id}, secret=TEST_JWT_SECRET)}"}

    assert client.get("/owners-only", headers=headers).status_code == 403
    assert client.get("/editors", headers=headers).json() == {"id": admin.id}
