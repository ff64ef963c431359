from sqlalchemy import func, select

from attendance_api.db.models import Attendance, FaceDescriptor, User

from conftest import PASSWORD, auth_headers, random_descriptor


def test_company_registration_login_and_logout(client):
    register = client.post(
        "/api/companies/register",
        json={
            "company_name": "Initech",
            "company_email": "hello@initech.example",
            "admin_name": "Bill",
            "admin_email": "bill@initech.example",
            "admin_password": "tps-report",
            "role": "admin",
            "timezone": "Europe/Berlin",
        },
    )
    assert register.status_code == 201
    data = register.json()["data"]
    assert data["company"]["timezone"] == "Europe/Berlin"
    assert data["admin_user"]["role"] == "admin"

    duplicate = client.post(
        "/api/companies/register",
        json={
            "company_name": "Initech",
            "company_email": "hello@initech.example",
            "admin_name": "Bill",
            "admin_email": "other@initech.example",
            "admin_password": "tps-report",
            "role": "admin",
        },
    )
    assert duplicate.status_code == 409

    bad_login = client.post("/api/auth/login", json={"email": "bill@initech.example", "password": "wrong"})
    assert bad_login.status_code == 401

    login = client.post("/api/auth/login", json={"email": "bill@initech.example", "password": "tps-report"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['data']['token']}"}

    me = client.get("/api/auth/me", headers=headers)
    assert me.json()["data"]["email"] == "bill@initech.example"
    details = client.get("/api/company/details", headers=headers)
    assert details.json()["data"]["name"] == "Initech"

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_login_revokes_older_tokens(client, make_company, make_user):
    user = make_user(make_company())
    stale = auth_headers(user)

    login = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})

    assert login.status_code == 200
    assert client.get("/api/auth/me", headers=stale).status_code == 401


def test_company_update_and_superadmin_listing(client, make_company, make_user):
    acme = make_company("Acme")
    admin = make_user(acme, role="admin")
    employee = make_user(acme)
    root = make_user(None, role="superadmin")

    updated = client.put("/api/company/update", json={"phone": "555-0100"}, headers=auth_headers(admin))
    assert updated.status_code == 200
    assert updated.json()["data"]["phone"] == "555-0100"

    denied = client.put("/api/company/update", json={"phone": "1"}, headers=auth_headers(employee))
    assert denied.status_code == 403
    assert denied.json()["message"] == "Unauthorized to update company details"

    assert client.get("/api/companies", headers=auth_headers(admin)).status_code == 403
    listing = client.get("/api/companies", headers=auth_headers(root))
    assert [company["name"] for company in listing.json()["data"]] == ["Acme"]
    assert client.get(f"/api/companies/{acme.id}", headers=auth_headers(root)).status_code == 200
    assert client.get("/api/companies/999", headers=auth_headers(root)).status_code == 404


def test_user_management_is_tenant_scoped(client, make_company, make_user):
    acme, globex = make_company("Acme"), make_company("Globex")
    admin = make_user(acme, role="admin")
    employee = make_user(acme)
    outsider = make_user(globex)

    created = client.post(
        "/api/users",
        json={"name": "Carol", "email": "carol@acme.example", "password": "hunter22", "position": "Engineer"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    assert created.json()["data"]["company_id"] == acme.id
    assert created.json()["data"]["role"] == "employee"

    listing = client.get("/api/users", headers=auth_headers(admin))
    emails = {user["email"] for user in listing.json()["data"]}
    assert "carol@acme.example" in emails
    assert outsider.email not in emails

    assert client.get("/api/users", headers=auth_headers(employee)).status_code == 403
    assert client.get(f"/api/users/{employee.id}", headers=auth_headers(employee)).status_code == 200
    assert client.get(f"/api/users/{outsider.id}", headers=auth_headers(admin)).status_code == 403
    assert client.get("/api/users/999", headers=auth_headers(admin)).status_code == 404

    escalation = client.post(
        "/api/users",
        json={"name": "Eve", "email": "eve@acme.example", "password": "hunter22", "role": "superadmin"},
        headers=auth_headers(admin),
    )
    assert escalation.status_code == 403


def test_deleting_user_cascades_descriptor_and_attendance(client, db, make_company, make_user, enroll):
    acme = make_company()
    admin = make_user(acme, role="admin")
    worker = make_user(acme)
    enroll(worker, random_descriptor(4))
    worker_id = worker.id
    client.post(
        "/api/attendance/mark",
        json={"face_descriptor": random_descriptor(4).tolist()},
        headers=auth_headers(admin),
    )

    response = client.delete(f"/api/users/{worker_id}", headers=auth_headers(admin))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, worker_id) is None
    assert db.scalar(select(func.count(FaceDescriptor.id))) == 0
    assert db.scalar(select(func.count(Attendance.id))) == 0


def test_shift_lifecycle(client, db, make_company, make_user):
    acme = make_company()
    admin = make_user(acme, role="admin")
    employee = make_user(acme)
    headers = auth_headers(admin)

    invalid = client.post(
        "/api/shifts",
        json={"shift_name": "Night", "punch_in_time": "22:00", "punch_out_time": "06:00", "status": "active"},
        headers=headers,
    )
    assert invalid.status_code == 422

    created = client.post(
        "/api/shifts",
        json={"shift_name": "Day", "punch_in_time": "09:00", "punch_out_time": "17:00", "status": "active"},
        headers=headers,
    )
    assert created.status_code == 201
    shift_id = created.json()["data"]["id"]

    duplicate = client.post(
        "/api/shifts",
        json={"shift_name": "Day", "punch_in_time": "08:00", "punch_out_time": "16:00", "status": "active"},
        headers=headers,
    )
    assert duplicate.status_code == 409

    assert client.post(
        "/api/shifts",
        json={"shift_name": "Late", "punch_in_time": "12:00", "punch_out_time": "20:00", "status": "active"},
        headers=auth_headers(employee),
    ).status_code == 403

    updated = client.put(f"/api/shifts/{shift_id}", json={"punch_out_time": "18:00"}, headers=headers)
    assert updated.json()["data"]["punch_out_time"] == "18:00"
    backwards = client.put(f"/api/shifts/{shift_id}", json={"punch_out_time": "08:00"}, headers=headers)
    assert backwards.status_code == 400

    assert [s["shift_name"] for s in client.get("/api/shifts", headers=auth_headers(employee)).json()["data"]] == ["Day"]

    employee.shift_id = shift_id
    db.commit()
    blocked = client.delete(f"/api/shifts/{shift_id}", headers=headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot delete shift because users are assigned to it"

    employee.shift_id = None
    db.commit()
    assert client.delete(f"/api/shifts/{shift_id}", headers=headers).status_code == 200
    assert client.get(f"/api/shifts/{shift_id}", headers=headers).status_code == 404


def test_face_descriptor_endpoints(client, make_company, make_user):
    acme, globex = make_company("Acme"), make_company("Globex")
    admin = make_user(acme, role="admin")
    employee = make_user(acme)
    colleague = make_user(acme)
    outsider = make_user(globex)
    vector = random_descriptor(6).tolist()

    created = client.post("/api/face-descriptor", json={"face_descriptor": vector}, headers=auth_headers(employee))
    assert created.status_code == 201
    assert created.json()["message"] == "Face descriptor saved successfully"

    replaced = client.post(
        "/api/face-descriptor",
        json={"face_descriptor": random_descriptor(7).tolist(), "user_id": employee.id},
        headers=auth_headers(admin),
    )
    assert replaced.status_code == 200
    assert replaced.json()["message"] == "Face descriptor updated successfully"

    fetched = client.get(f"/api/face-descriptor?user_id={employee.id}", headers=auth_headers(admin))
    assert fetched.status_code == 200
    assert fetched.json()["data"]["face_descriptor"] == random_descriptor(7).tolist()

    short = client.post("/api/face-descriptor", json={"face_descriptor": vector[:10]}, headers=auth_headers(employee))
    assert short.status_code == 422

    assert client.post(
        "/api/face-descriptor",
        json={"face_descriptor": vector, "user_id": colleague.id},
        headers=auth_headers(employee),
    ).status_code == 403
    assert client.post(
        "/api/face-descriptor",
        json={"face_descriptor": vector, "user_id": outsider.id},
        headers=auth_headers(admin),
    ).status_code == 403

    assert client.delete("/api/face-descriptor", headers=auth_headers(employee)).status_code == 200
    missing = client.get("/api/face-descriptor", headers=auth_headers(employee))
    assert missing.status_code == 404
    assert missing.json()["message"] == "Face descriptor not found for user"
