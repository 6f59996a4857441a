import pytest
from conftest import auth_headers, make_user

from podium import db
from podium.errors import AuthenticationError, IdentityNotVerified, ValidationError
from podium.models import OneTimeCode, User
from podium.services import auth_service, profile_service


@pytest.fixture
def fixed_code(monkeypatch):
    monkeypatch.setattr(OneTimeCode, "generate_code", staticmethod(lambda: "123456"))
    return "123456"


@pytest.fixture
def ann(app):
    return make_user("ann")


def test_profile_shows_account_details(client, ann):
    response = client.get("/api/profile", headers=auth_headers(ann))

    assert response.status_code == 200
    data = response.get_json()
    assert data["email"] == "ann@example.com"
    assert data["preferred_auth_method"] == "Email"
    assert data["has_password"] is False


def test_profile_requires_login(client):
    assert client.get("/api/profile").status_code == 401


def test_first_password_needs_emailed_code(client, ann, fixed_code):
    headers = auth_headers(ann)

    response = client.post(
        "/api/profile/password", json={"new_password": "pitlane"}, headers=headers
    )
    assert response.status_code == 400

    assert client.post("/api/profile/password/send-code", headers=headers).status_code == 200
    response = client.post(
        "/api/profile/password",
        json={"new_password": "pitlane", "code": fixed_code},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["has_password"] is True
    assert ann.check_password("pitlane")


def test_replacing_password_needs_old_password(client, ann):
    ann.set_password("pitlane")
    db.session.commit()
    headers = auth_headers(ann)

    response = client.post(
        "/api/profile/password",
        json={"new_password": "chequered", "old_password": "wrong-one"},
        headers=headers,
    )
    assert response.status_code == 403

    response = client.post(
        "/api/profile/password",
        json={"new_password": "short", "old_password": "pitlane"},
        headers=headers,
    )
    assert response.status_code == 400

    response = client.post(
        "/api/profile/password",
        json={"new_password": "chequered", "old_password": "pitlane"},
        headers=headers,
    )
    assert response.status_code == 200
    assert ann.check_password("chequered")


def test_password_sign_in_follows_preferred_method(client, ann):
    ann.set_password("pitlane")
    db.session.commit()
    credentials = {"email": "ann", "password": "pitlane"}

    # Code-only accounts cannot use a password yet
    assert client.post("/api/auth/signin", json=credentials).status_code == 401

    response = client.post(
        "/api/profile/auth-method",
        json={"method": "Both", "password": "pitlane"},
        headers=auth_headers(ann),
    )
    assert response.status_code == 200
    assert response.get_json()["preferred_auth_method"] == "Both"

    response = client.post("/api/auth/signin", json=credentials)
    assert response.status_code == 200
    token = response.get_json()["session"]["token"]

    response = client.post(
        "/api/auth/validate-session", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.get_json()["user"]["username"] == "ann"

    response = client.post(
        "/api/auth/signin", json={"email": "ann@example.com", "password": "nope!!"}
    )
    assert response.status_code == 401


def test_auth_method_validation(client, ann):
    headers = auth_headers(ann)

    response = client.post(
        "/api/profile/auth-method", json={"method": "Carrier pigeon"}, headers=headers
    )
    assert response.status_code == 400

    # No password set yet
    response = client.post(
        "/api/profile/auth-method", json={"method": "Password"}, headers=headers
    )
    assert response.status_code == 400


def test_change_username_with_code(client, ann, fixed_code):
    make_user("ben")
    headers = auth_headers(ann)

    response = client.post(
        "/api/profile/username", json={"new_username": "annie"}, headers=headers
    )
    assert response.status_code == 400
    assert "password or verification code" in response.get_json()["error"]

    client.post("/api/profile/password/send-code", headers=headers)

    response = client.post(
        "/api/profile/username",
        json={"new_username": "BEN", "code": fixed_code},
        headers=headers,
    )
    assert response.status_code == 409

    response = client.post(
        "/api/profile/username",
        json={"new_username": "annie", "code": fixed_code},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["username"] == "annie"
    assert User.find_by_email_or_username("ANNIE").id == ann.id


def test_change_email_with_code_sent_to_new_address(client, ann, fixed_code):
    User.create_user("cal", "cal@racing.org")
    db.session.commit()
    headers = auth_headers(ann)

    response = client.post(
        "/api/profile/email/send-code",
        json={"new_email": "Cal@racing.org"},
        headers=headers,
    )
    assert response.status_code == 409

    response = client.post(
        "/api/profile/email/send-code",
        json={"new_email": "ann@racing.org"},
        headers=headers,
    )
    assert response.status_code == 200
    assert OneTimeCode.query.filter_by(email="ann@racing.org").count() == 1

    response = client.post(
        "/api/profile/email/confirm",
        json={"new_email": "ann@racing.org", "code": "000000"},
        headers=headers,
    )
    assert response.status_code == 400
    assert ann.email == "ann@example.com"

    response = client.post(
        "/api/profile/email/confirm",
        json={"new_email": "ann@racing.org", "code": fixed_code},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["email"] == "ann@racing.org"


def test_code_for_new_address_does_not_sign_in(ann, fixed_code):
    profile_service.request_email_change(ann, "ann@racing.org")

    with pytest.raises(AuthenticationError):
        auth_service.verify_sign_in_code("ann@racing.org", fixed_code)


def test_verify_identity(ann, fixed_code):
    ann.set_password("pitlane")
    db.session.commit()

    auth_service.verify_identity(ann, password="pitlane")

    with pytest.raises(IdentityNotVerified):
        auth_service.verify_identity(ann, password="wrong")

    with pytest.raises(ValidationError):
        auth_service.verify_identity(ann)

    profile_service.send_identity_code(ann)
    auth_service.verify_identity(ann, code=fixed_code)

    # Codes are single use
    with pytest.raises(IdentityNotVerified):
        auth_service.verify_identity(ann, code=fixed_code)


def test_username_change_refreshes_cached_standings(client, world, ann, fixed_code):
    response = client.get("/api/leaderboard/global?all_participants=1")
    assert [row["username"] for row in response.get_json()["standings"]] == ["ann"]

    profile_service.send_identity_code(ann)
    profile_service.change_username(ann, "annie", code=fixed_code)

    response = client.get("/api/leaderboard/global?all_participants=1")
    assert [row["username"] for row in response.get_json()["standings"]] == ["annie"]
