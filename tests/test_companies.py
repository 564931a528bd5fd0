from taskhub.models import Company

from conftest import auth


def test_create_company_sets_creator(client, make_user):
    admin = make_user("Ada Admin", role="admin")
    response = client.post("/companies/", json={"name": "Acme", "email": "hello@acme.io"}, headers=auth(admin))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["company"]["name"] == "Acme"
    assert body["company"]["created_by"] == admin.id
    assert body["company"]["is_active"] is True


def test_duplicate_company_name_conflicts(client, make_user):
    admin = make_user("Ada Admin", role="admin")
    assert client.post("/companies/", json={"name": "Acme"}, headers=auth(admin)).status_code == 201

    response = client.post("/companies/", json={"name": "Acme"}, headers=auth(admin))
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Company already exists"}


def test_missing_name_is_a_validation_error(client, make_user):
    admin = make_user("Ada Admin", role="admin")
    response = client.post("/companies/", json={"description": "nameless"}, headers=auth(admin))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_requests_without_token_are_rejected(client):
    response = client.get("/companies/")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_staff_cannot_manage_companies(client, make_company, make_user):
    staff = make_user("Sam Staff", company=make_company("Initech"))
    assert client.get("/companies/", headers=auth(staff)).status_code == 403
    assert client.post("/companies/", json={"name": "New"}, headers=auth(staff)).status_code == 403


def test_manager_only_lists_own_company(client, make_company, make_user):
    for i in range(10):
        make_company(f"Company {i}")
    own = make_company("C1")
    manager = make_user("Mia Manager", role="manager", company=own)

    for params in ({}, {"search": "Company"}, {"search": "c"}, {"is_active": "true"}):
        body = client.get("/companies/", params=params, headers=auth(manager)).json()
        assert all(c["id"] == own.id for c in body["companies"])

    body = client.get("/companies/", headers=auth(manager)).json()
    assert body["count"] == 1
    assert body["user_role"] == "manager"
    assert body["filters"] == {"search": "", "is_active": "all", "return_type": "full"}


def test_list_projections(client, make_company, make_user):
    admin = make_user("Ada Admin", role="admin")
    acme = make_company("Acme", created_by=admin.id)
    make_company("Dormant", is_active=False)
    make_user("Sam Staff", company=acme)
    make_user("Stu Staff", company=acme)

    minimal = client.get("/companies/", params={"return_type": "minimal", "search": "acme"}, headers=auth(admin)).json()
    assert minimal["companies"] == [{
        "id": acme.id,
        "name": "Acme",
        "email": None,
        "phone": None,
        "is_active": True,
        "user_count": 2,
        "created_by": "Ada Admin",
    }]

    dropdown = client.get("/companies/", params={"return_type": "dropdown", "is_active": "false"}, headers=auth(admin)).json()
    assert [c["label"] for c in dropdown["companies"]] == ["Dormant"]
    assert set(dropdown["companies"][0]) == {"label", "value", "is_active"}

    detailed = client.get("/companies/", params={"return_type": "detailed", "search": "acme"}, headers=auth(admin)).json()
    assert sorted(u["name"] for u in detailed["companies"][0]["users"]) == ["Sam Staff", "Stu Staff"]
    assert detailed["companies"][0]["creator"]["name"] == "Ada Admin"

    assert client.get("/companies/", params={"return_type": "bogus"}, headers=auth(admin)).status_code == 400


def test_get_company(client, make_company, make_user):
    acme = make_company("Acme")
    other = make_company("Other")
    manager = make_user("Mia Manager", role="manager", company=acme)

    assert client.get(f"/companies/{acme.id}", headers=auth(manager)).json()["company"]["name"] == "Acme"
    assert client.get(f"/companies/{other.id}", headers=auth(manager)).status_code == 404
    assert client.get("/companies/9999", headers=auth(manager)).status_code == 404


def test_update_requires_admin_or_creator(client, db, make_company, make_user):
    creator = make_user("Mia Manager", role="manager")
    acme = make_company("Acme", created_by=creator.id)
    creator.company_id = acme.id
    db.commit()
    other_manager = make_user("Max Manager", role="manager", company=acme)
    admin = make_user("Ada Admin", role="admin")

    response = client.put(f"/companies/{acme.id}", json={"phone": "555"}, headers=auth(other_manager))
    assert response.status_code == 403

    response = client.put(f"/companies/{acme.id}", json={"phone": "555"}, headers=auth(creator))
    assert response.status_code == 200
    assert response.json()["company"]["phone"] == "555"
    assert response.json()["company"]["name"] == "Acme"

    make_company("Globex")
    response = client.put(f"/companies/{acme.id}", json={"name": "Globex"}, headers=auth(admin))
    assert response.status_code == 400

    response = client.put(f"/companies/{acme.id}", json={"is_active": False}, headers=auth(admin))
    assert response.json()["company"]["is_active"] is False

    assert client.put("/companies/9999", json={"phone": "1"}, headers=auth(admin)).status_code == 404


def test_delete_blocked_while_users_exist(client, db, make_company, make_user):
    admin = make_user("Ada Admin", role="admin")
    acme = make_company("Acme", created_by=admin.id)
    make_user("Sam Staff", company=acme)

    response = client.delete(f"/companies/{acme.id}", headers=auth(admin))
    assert response.status_code == 400
    assert "Remove users first" in response.json()["message"]
    db.expire_all()
    assert db.get(Company, acme.id) is not None


def test_delete_company(client, db, make_company, make_user):
    admin = make_user("Ada Admin", role="admin")
    creator = make_user("Mia Manager", role="manager")
    empty = make_company("Empty", created_by=creator.id)
    company_id = empty.id
    stranger = make_user("Max Manager", role="manager")

    assert client.delete(f"/companies/{company_id}", headers=auth(stranger)).status_code == 403

    response = client.delete(f"/companies/{company_id}", headers=auth(admin))
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Company deleted successfully"}
    db.expire_all()
    assert db.get(Company, company_id) is None
    assert client.delete(f"/companies/{company_id}", headers=auth(admin)).status_code == 404
