import datetime

from brokerage_service.app.config import settings
from brokerage_service.tests.factories import ADMIN_KEY, ADMIN_PASSWORD, ADMIN_PHONE, bearer

AUTH = "/api/v1/auth"


def _admin_registration(**overrides):
    payload = {"name": "Root", "phoneNumber": "+254711999999", "password": "rootpass", "adminKey": ADMIN_KEY}
    payload.update(overrides)
    return payload


def test_register_admin_returns_summary_without_secrets(api_client):
    response = api_client.post(f"{AUTH}/registeradmin", json=_admin_registration())

    assert response.status_code == 201
    user = response.json()["data"]
    assert user["role"] == "Admin"
    assert user["_id"] == user["id"]
    assert "passwordHash" not in user


def test_register_admin_needs_the_right_key(api_client):
    wrong = api_client.post(f"{AUTH}/registeradmin", json=_admin_registration(adminKey="guess"))
    absent = api_client.post(f"{AUTH}/registeradmin", json=_admin_registration(adminKey=None))

    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid admin registration key"
    assert absent.status_code == 401


def test_register_admin_is_disabled_without_configured_key(api_client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_REGISTRATION_KEY", "")

    response = api_client.post(f"{AUTH}/registeradmin", json=_admin_registration(adminKey=""))

    assert response.status_code == 401


def test_login_issues_token(api_client, admin_headers):
    response = api_client.post(f"{AUTH}/login", json={"phoneNumber": ADMIN_PHONE, "password": ADMIN_PASSWORD})

    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["phoneNumber"] == ADMIN_PHONE


def test_login_failures(api_client, admin_headers):
    incomplete = api_client.post(f"{AUTH}/login", json={"phoneNumber": ADMIN_PHONE})
    wrong = api_client.post(f"{AUTH}/login", json={"phoneNumber": ADMIN_PHONE, "password": "nope-nope"})

    assert incomplete.status_code == 400
    assert incomplete.json()["message"] == "Please provide phone number and password"
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid credentials"


def test_admin_registers_staff_and_duplicate_phone_is_rejected(api_client, admin_headers):
    payload = {"name": "Agent Smith", "phoneNumber": "+254722123456", "password": "agentpw", "role": "Agent"}

    created = api_client.post(f"{AUTH}/register", headers=admin_headers, json=payload)
    repeated = api_client.post(f"{AUTH}/register", headers=admin_headers, json=payload)

    assert created.status_code == 201
    assert created.json()["data"]["role"] == "Agent"
    assert repeated.status_code == 400
    assert repeated.json()["message"] == "User with that phone number already exists"


def test_register_validates_password_length(api_client, admin_headers):
    response = api_client.post(f"{AUTH}/register", headers=admin_headers, json={
        "name": "Short", "phoneNumber": "+254722000001", "password": "123",
    })
    assert response.status_code == 400


def test_me_returns_profile_without_secrets(api_client, admin_headers):
    response = api_client.get(f"{AUTH}/me", headers=admin_headers)

    user = response.json()["data"]
    assert user["phoneNumber"] == ADMIN_PHONE
    assert "passwordHash" not in user
    assert "version" not in user


def test_update_profile_changes_only_profile_fields(api_client, admin_headers):
    response = api_client.put(f"{AUTH}/updateprofile", headers=admin_headers, json={
        "name": "Chief Admin", "email": "chief@brokerage.co.ke", "role": "Support",
    })

    assert response.status_code == 200
    user = response.json()["data"]
    assert user["name"] == "Chief Admin"
    assert user["email"] == "chief@brokerage.co.ke"
    assert user["role"] == "Admin"


def test_update_profile_password_then_login(api_client, admin_headers):
    api_client.put(f"{AUTH}/updateprofile", headers=admin_headers, json={"password": "brand-new-pw"})

    old = api_client.post(f"{AUTH}/login", json={"phoneNumber": ADMIN_PHONE, "password": ADMIN_PASSWORD})
    new = api_client.post(f"{AUTH}/login", json={"phoneNumber": ADMIN_PHONE, "password": "brand-new-pw"})

    assert old.status_code == 401
    assert new.status_code == 200


def test_update_profile_rejects_bad_email(api_client, admin_headers):
    response = api_client.put(f"{AUTH}/updateprofile", headers=admin_headers, json={"email": "not-an-email"})
    assert response.status_code == 400


def test_forgot_and_reset_password(api_client, admin_headers, mongo_db):
    forgot = api_client.post(f"{AUTH}/forgotpassword", json={"phoneNumber": ADMIN_PHONE})
    token = forgot.json()["data"]["resetToken"]
    stored = mongo_db.sync["users"].find_one({"phoneNumber": ADMIN_PHONE})
    assert stored["resetPasswordToken"] != token

    reset = api_client.put(f"{AUTH}/resetpassword/{token}", json={"password": "reset-pw-1"})

    assert reset.status_code == 200
    assert api_client.get(f"{AUTH}/me", headers=bearer(reset.json()["token"])).status_code == 200
    assert "resetPasswordToken" not in mongo_db.sync["users"].find_one({"phoneNumber": ADMIN_PHONE})
    reused = api_client.put(f"{AUTH}/resetpassword/{token}", json={"password": "reset-pw-2"})
    assert reused.status_code == 400
    assert reused.json()["message"] == "Invalid token or token has expired"


def test_expired_reset_token_is_rejected(api_client, admin_headers, mongo_db):
    token = api_client.post(f"{AUTH}/forgotpassword", json={"phoneNumber": ADMIN_PHONE}).json()["data"]["resetToken"]
    mongo_db.sync["users"].update_one(
        {"phoneNumber": ADMIN_PHONE},
        {"$set": {"resetPasswordExpire": datetime.datetime(2000, 1, 1)}},
    )

    response = api_client.put(f"{AUTH}/resetpassword/{token}", json={"password": "reset-pw-1"})

    assert response.status_code == 400


def test_reset_password_validation(api_client):
    assert api_client.put(f"{AUTH}/resetpassword/anything", json={"password": "123"}).status_code == 400
    missing_user = api_client.post(f"{AUTH}/forgotpassword", json={"phoneNumber": "+254799999999"})
    assert missing_user.status_code == 404
    assert missing_user.json()["message"] == "There is no user with that phone number"
