from datetime import timedelta

from leave_system.services import auth as auth_service


def test_login_success(client, employee_account):
    response = client.post("/api/auth/login", json={"employeeId": "EMP001", "password": "pass1234"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"] == {"employeeId": "EMP001", "name": "測試員工", "permission": "employee"}

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.json()["data"]["employeeId"] == "EMP001"


def test_login_wrong_password(client, employee_account):
    response = client.post("/api/auth/login", json={"employeeId": "EMP001", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["errors"][0]["code"] == "AUTH_FAILED"


def test_login_unknown_account(client, db_session):
    response = client.post("/api/auth/login", json={"employeeId": "GHOST", "password": "x"})
    assert response.status_code == 401


def test_expired_token_rejected(client, employee_account):
    token = auth_service.create_access_token(
        {"sub": "EMP001", "type": "access"}, expires_delta=timedelta(minutes=-1)
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "TOKEN_EXPIRED"


def test_garbage_token_rejected(client, employee_account):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_token_for_deleted_account_rejected(client, accounts, employee_account, get_token):
    token = get_token(employee_account)
    accounts.delete("EMP001", acting_employee_id="ADMIN01")
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_passwords_are_stored_encrypted(accounts, employee_account):
    assert employee_account.encrypted_password != "pass1234"
    assert accounts.password_of(employee_account) == "pass1234"


def _change(client, headers, current, new):
    return client.put(
        "/api/user/change-password",
        json={"currentPassword": current, "newPassword": new},
        headers=headers,
    )


def test_change_password(client, employee_account, auth_headers):
    response = _change(client, auth_headers(employee_account), "pass1234", "newpass")
    assert response.status_code == 200
    assert response.json()["success"] is True
    login = client.post("/api/auth/login", json={"employeeId": "EMP001", "password": "newpass"})
    assert login.status_code == 200


def test_change_password_wrong_current(client, employee_account, auth_headers):
    response = _change(client, auth_headers(employee_account), "wrong", "newpass")
    assert response.status_code == 400


def test_change_password_too_short(client, employee_account, auth_headers):
    response = _change(client, auth_headers(employee_account), "pass1234", "abc")
    assert response.status_code == 400
    assert response.json()["errors"][0]["details"]["field"] == "newPassword"


def test_change_password_same_as_current(client, employee_account, auth_headers):
    response = _change(client, auth_headers(employee_account), "pass1234", "pass1234")
    assert response.status_code == 400
