import csv
import io
import os

from leave_system.core.config import settings


def test_list_users_includes_password_and_quotas(client, admin_account, employee_account, auth_headers):
    response = client.get("/api/admin/users", headers=auth_headers(admin_account))
    assert response.status_code == 200
    users = {u["employeeId"]: u for u in response.json()["data"]}
    assert set(users) == {"ADMIN01", "EMP001"}
    assert users["EMP001"] == {
        "employeeId": "EMP001",
        "name": "測試員工",
        "password": "pass1234",
        "permission": "employee",
        "annualLeave": 14,
        "sickLeave": 30,
        "menstrualLeave": 3,
        "personalLeave": 14,
    }


def test_admin_endpoints_require_admin(client, employee_account, auth_headers):
    response = client.get("/api/admin/users", headers=auth_headers(employee_account))
    assert response.status_code == 403


def test_create_user_with_defaults(client, admin_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={"employeeId": "EMP100", "name": "新人", "password": "abcd", "permission": "employee"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 200
    created = response.json()["data"]
    assert created["menstrualLeave"] == 3
    assert created["sickLeave"] == 30


def test_create_user_with_custom_quota(client, admin_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={
            "employeeId": "EMP101", "name": "客製", "password": "abcd",
            "permission": "employee", "menstrualLeave": 36, "annualLeave": 0,
        },
        headers=auth_headers(admin_account),
    )
    created = response.json()["data"]
    assert created["menstrualLeave"] == 36
    assert created["annualLeave"] == 0


def test_create_duplicate_user(client, admin_account, employee_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={"employeeId": "EMP001", "name": "重複", "password": "abcd", "permission": "employee"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "CONFLICT"


def test_create_user_invalid_permission(client, admin_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={"employeeId": "EMP102", "name": "x", "password": "abcd", "permission": "root"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"


def test_create_user_negative_quota(client, admin_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={"employeeId": "EMP103", "name": "x", "password": "abcd", "permission": "employee", "sickLeave": -1},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 400


def test_create_user_blank_field(client, admin_account, auth_headers):
    response = client.post(
        "/api/admin/users",
        json={"employeeId": "EMP104", "name": "  ", "password": "abcd", "permission": "employee"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 400


def test_update_user_partial(client, admin_account, employee_account, auth_headers):
    response = client.put(
        "/api/admin/users/EMP001",
        json={"personalLeave": 20, "permission": "admin"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["personalLeave"] == 20
    assert updated["permission"] == "admin"
    assert updated["name"] == "測試員工"
    assert updated["annualLeave"] == 14


def test_raised_quota_admits_more_leave(client, admin_account, employee_account, auth_headers):
    headers = auth_headers(employee_account)
    payload = {"leaveType": "事假", "startDate": "2024-06-15", "startTime": "08:00", "endDate": "2024-06-15", "endTime": "18:00"}
    assert client.post("/api/leave/records", json=payload, headers=headers).status_code == 200
    assert client.post("/api/leave/records", json=payload, headers=headers).status_code == 400
    client.put("/api/admin/users/EMP001", json={"personalLeave": 20}, headers=auth_headers(admin_account))
    assert client.post("/api/leave/records", json=payload, headers=headers).status_code == 200


def test_update_unknown_user(client, admin_account, auth_headers):
    response = client.put("/api/admin/users/NOPE", json={"name": "x"}, headers=auth_headers(admin_account))
    assert response.status_code == 404


def test_delete_user(client, admin_account, employee_account, auth_headers):
    headers = auth_headers(admin_account)
    response = client.delete("/api/admin/users/EMP001", headers=headers)
    assert response.status_code == 200
    users = client.get("/api/admin/users", headers=headers).json()["data"]
    assert [u["employeeId"] for u in users] == ["ADMIN01"]


def test_scenario_e_admin_cannot_delete_self(client, admin_account, auth_headers):
    headers = auth_headers(admin_account)
    response = client.delete("/api/admin/users/ADMIN01", headers=headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "SELF_DELETION"
    users = client.get("/api/admin/users", headers=headers).json()["data"]
    assert "ADMIN01" in [u["employeeId"] for u in users]


def test_delete_unknown_user(client, admin_account, auth_headers):
    response = client.delete("/api/admin/users/NOPE", headers=auth_headers(admin_account))
    assert response.status_code == 404


def test_export_users_csv(client, admin_account, employee_account, auth_headers):
    response = client.post("/api/admin/users/export", headers=auth_headers(admin_account))
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "filename*=utf-8''" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
    assert rows[0] == ["工號", "姓名", "密碼", "權限", "年度特休", "年度病假", "年度生理假", "年度事假"]
    assert ["ADMIN01", "主管", "admin1234", "管理者", "14", "30", "3", "14"] in rows
    assert ["EMP001", "測試員工", "pass1234", "員工", "14", "30", "3", "14"] in rows

    # transient file removed after transfer
    leftovers = [f for _, _, files in os.walk(settings.export_temp_dir) for f in files]
    assert leftovers == []


def test_export_leave_records_csv(client, admin_account, employee_account, auth_headers):
    client.post(
        "/api/leave/records",
        json={"leaveType": "病假", "startDate": "2024-06-20", "startTime": "08:00", "endDate": "2024-06-20", "endTime": "12:00"},
        headers=auth_headers(employee_account),
    )
    response = client.post(
        "/api/admin/leave-records/export",
        params={"startMonth": "2024-06"},
        headers=auth_headers(admin_account),
    )
    assert response.status_code == 200
    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
    assert len(rows) == 2
    assert rows[1][1:4] == ["EMP001", "測試員工", "病假"]
    assert rows[1][8] == "4"
    assert rows[1][10] == "簽核中"


def test_quota_with_three_decimals_is_rejected(client, admin_account, employee_account, auth_headers):
    headers = auth_headers(admin_account)
    response = client.put("/api/admin/users/EMP001", json={"sickLeave": 12.345}, headers=headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["details"]["field"] == "sickLeave"
    users = {u["employeeId"]: u for u in client.get("/api/admin/users", headers=headers).json()["data"]}
    assert users["EMP001"]["sickLeave"] == 30
