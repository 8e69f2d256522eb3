import pytest
from fastapi.testclient import TestClient
from filelock import FileLock

from office_dashboard import deps
from office_dashboard.main import app


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(deps.repo, "data_file", tmp_path / "office.xlsx")
    monkeypatch.setattr(deps.repo, "backup_dir", tmp_path / "backups")
    monkeypatch.setattr(deps.repo, "lock_file", tmp_path / "office.lock")
    monkeypatch.setattr(deps.repo, "lock", FileLock(str(tmp_path / "office.lock")))
    monkeypatch.setattr(deps.auth_store, "admin_password", "admin-secret")
    monkeypatch.setattr(deps.auth_store, "user_password", "staff-secret")
    with TestClient(app) as test_client:
        yield test_client


def _login(client, password):
    response = client.post("/api/auth/login", json={"password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_login_roles(client):
    assert client.post("/api/auth/login", json={"password": "nope"}).status_code == 401
    admin = client.post("/api/auth/login", json={"password": "admin-secret"}).json()
    staff = client.post("/api/auth/login", json={"password": "staff-secret"}).json()
    assert admin["role"] == "admin"
    assert staff["role"] == "user"


def test_requires_session(client):
    assert client.get("/api/dashboard").status_code == 401
    assert client.get("/api/dashboard", headers={"Authorization": "Token x"}).status_code == 401

    headers = _login(client, "staff-secret")
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/dashboard", headers=headers).status_code == 401


def test_staff_cannot_manage_employees(client):
    headers = _login(client, "staff-secret")
    response = client.post(
        "/api/employees",
        json={"first_name": "Eve", "last_name": "Evans"},
        headers=headers,
    )
    assert response.status_code == 403


def test_dashboard_flow(client):
    admin = _login(client, "admin-secret")
    staff = _login(client, "staff-secret")
    start = client.get("/api/changes", headers=staff).json()["revision"]

    assert client.put("/api/settings/total-desks", json={"total_desks": 10}, headers=admin).status_code == 200
    alice = client.post(
        "/api/employees",
        json={"first_name": "Alice", "last_name": "Archer", "team": "Core", "remote_days": ["tuesday"]},
        headers=admin,
    ).json()
    bob = client.post(
        "/api/employees",
        json={"first_name": "Bob", "last_name": "Baker", "desk_number": 4},
        headers=admin,
    ).json()
    response = client.post(
        "/api/vacations",
        json={"employee_id": bob["id"], "start_date": "2024-06-10", "end_date": "2024-06-14"},
        headers=admin,
    )
    assert response.status_code == 200

    view = client.get("/api/dashboard", params={"day": "2024-06-10"}, headers=staff).json()
    assert view["available_today"] == 9
    assert view["available_tomorrow"] == 10
    assert view["status_counts"]["vacation"] == 1
    assert view["team_counts"] == {"Core": 1}

    filtered = client.get(
        "/api/dashboard",
        params={"day": "2024-06-10", "status": "vacation"},
        headers=staff,
    ).json()
    assert [card["employee"]["id"] for card in filtered["employees"]] == [bob["id"]]
    assert filtered["employees"][0]["current_vacation"]["end_date"] == "2024-06-14"

    capacity = client.get(
        "/api/capacity", params={"start": "2024-06-10", "days": 2}, headers=staff
    ).json()
    assert capacity == [
        {"date": "2024-06-10", "available_desks": 9},
        {"date": "2024-06-11", "available_desks": 10},
    ]

    changes = client.get("/api/changes", params={"since": start}, headers=staff).json()
    assert [c["table"] for c in changes["changes"]] == ["settings", "employees", "employees", "vacations"]
    assert alice["id"] in {c["record_id"] for c in changes["changes"]}


def test_reservation_endpoints(client):
    admin = _login(client, "admin-secret")
    staff = _login(client, "staff-secret")
    alice = client.post(
        "/api/employees", json={"first_name": "Alice", "last_name": "Archer"}, headers=admin
    ).json()

    payload = {
        "employee_id": alice["id"],
        "desk_number": 12,
        "start_date": "2024-06-11",
        "end_date": "2024-06-13",
    }
    first = client.post("/api/reservations", json=payload, headers=staff)
    assert first.status_code == 200

    clash = dict(payload, start_date="2024-06-10", end_date="2024-06-12")
    assert client.post("/api/reservations", json=clash, headers=staff).status_code == 409
    assert client.post("/api/reservations", json=dict(clash, desk_number=13), headers=staff).status_code == 200

    cross_week = dict(payload, start_date="2024-06-14", end_date="2024-06-17", desk_number=1)
    assert client.post("/api/reservations", json=cross_week, headers=staff).status_code == 400

    free = client.get(
        "/api/desks/free", params={"start": "2024-06-10", "end": "2024-06-10"}, headers=staff
    ).json()
    assert 13 not in free and 12 in free

    listed = client.get("/api/reservations", params={"day": "2024-06-12"}, headers=staff).json()
    assert sorted(r["desk_number"] for r in listed) == [12, 13]

    reservation_id = first.json()["id"]
    assert client.delete(f"/api/reservations/{reservation_id}", headers=staff).status_code == 403
    assert client.delete(f"/api/reservations/{reservation_id}", headers=admin).status_code == 200


def test_layout_endpoints(client):
    admin = _login(client, "admin-secret")
    assert client.get("/api/layout", headers=admin).json() is None
    created = client.post(
        "/api/layout", json={"image_url": "https://files.example.com/floor.png"}, headers=admin
    ).json()
    assert client.get("/api/layout", headers=admin).json()["id"] == created["id"]
    assert client.delete(f"/api/layout/{created['id']}", headers=admin).status_code == 200
