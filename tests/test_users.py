from taskhub.models import Company

from conftest import auth


def total_users(db, company):
    db.expire_all()
    return db.get(Company, company.id).total_users


def test_manager_creates_staff_in_own_company(client, db, make_company, make_user):
    acme = make_company("Acme")
    manager = make_user("Mia Manager", role="manager", company=acme)

    response = client.post("/users/", json={"name": "New Hire", "email": "new@acme.io"}, headers=auth(manager))
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["company_id"] == acme.id
    assert user["role"] == "staff"
    assert total_users(db, acme) == 1

    duplicate = client.post("/users/", json={"name": "Again", "email": "new@acme.io"}, headers=auth(manager))
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Email already registered"


def test_manager_cannot_escape_company(client, make_company, make_user):
    acme = make_company("Acme")
    other = make_company("Other")
    manager = make_user("Mia Manager", role="manager", company=acme)

    elsewhere = {"name": "Spy", "email": "spy@other.io", "company_id": other.id}
    assert client.post("/users/", json=elsewhere, headers=auth(manager)).status_code == 403

    promoted = {"name": "Boss", "email": "boss@acme.io", "role": "admin"}
    assert client.post("/users/", json=promoted, headers=auth(manager)).status_code == 403


def test_admin_user_management(client, db, make_company, make_user):
    acme = make_company("Acme")
    other = make_company("Other")
    admin = make_user("Ada Admin", role="admin")

    missing_company = {"name": "Lost", "email": "lost@x.io", "role": "staff"}
    assert client.post("/users/", json=missing_company, headers=auth(admin)).status_code == 400

    created = client.post(
        "/users/", json={"name": "Sam", "email": "sam@acme.io", "company_id": acme.id}, headers=auth(admin)
    ).json()["user"]

    moved = client.put(f"/users/{created['id']}", json={"company_id": other.id}, headers=auth(admin))
    assert moved.status_code == 200
    assert total_users(db, acme) == 0
    assert total_users(db, other) == 1

    assert client.delete(f"/users/{admin.id}", headers=auth(admin)).status_code == 400
    assert client.delete(f"/users/{created['id']}", headers=auth(admin)).status_code == 200
    assert total_users(db, other) == 0


def test_user_listing_is_scoped(client, make_company, make_user):
    acme = make_company("Acme")
    manager = make_user("Mia Manager", role="manager", company=acme)
    staff = make_user("Sam Staff", company=acme)
    make_user("Olga Outsider", company=make_company("Other"))

    names = [u["name"] for u in client.get("/users/", headers=auth(manager)).json()["users"]]
    assert sorted(names) == ["Mia Manager", "Sam Staff"]

    assert [u["name"] for u in client.get("/users/", headers=auth(staff)).json()["users"]] == ["Sam Staff"]
    assert client.get(f"/users/{manager.id}", headers=auth(staff)).status_code == 404
    assert client.get("/users/me", headers=auth(staff)).json()["user"]["email"] == staff.email


def test_inactive_user_token_is_rejected(client, make_company, make_user):
    sleeper = make_user("Ian Inactive", role="manager", company=make_company("Acme"), is_active=False)
    response = client.get("/users/me", headers=auth(sleeper))
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_email_taken_between_check_and_commit_is_a_conflict(client, db, make_company, make_user, monkeypatch):
    from taskhub.routers import user as user_router

    acme = make_company("Acme")
    admin = make_user("Ada Admin", role="admin")
    payload = {"name": "Racer", "email": "racer@acme.io", "company_id": acme.id}
    assert client.post("/users/", json=payload, headers=auth(admin)).status_code == 201

    # the uniqueness pre-check passes as if the first insert had not landed yet
    monkeypatch.setattr(user_router, "ensure_unique_email", lambda *args, **kwargs: None)
    response = client.post("/users/", json=payload, headers=auth(admin))

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Email already registered"}
    assert total_users(db, acme) == 1
