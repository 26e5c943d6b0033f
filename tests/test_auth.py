from __future__ import annotations

from conftest import login
from extensions import db


def test_inactive_user_cannot_login(client, world):
    world.chi_user.is_active_flag = False
    db.session.commit()
    r = client.post("/api/v1/auth/login", json={"email": "chi@greenfield.test", "password": "pass"})
    assert r.status_code == 403
    assert r.get_json() == {"error": "inactive"}


def test_email_is_case_insensitive(client, world):
    r = client.post("/api/v1/auth/login", json={"email": "  ADE@Greenfield.test ", "password": "pass"})
    assert r.status_code == 200


def test_form_login_accepted(client, world):
    r = client.post("/api/v1/auth/login", data={"email": "ade@greenfield.test", "password": "pass"})
    assert r.status_code == 200
    assert r.get_json()["user"]["email"] == "ade@greenfield.test"


def test_unsafe_requests_need_csrf_token(app, client, world):
    app.config["WTF_CSRF_ENABLED"] = True
    # логин исключён из CSRF
    login(client, "ade@greenfield.test")
    assert client.post("/api/v1/auth/logout").status_code == 400

    token = client.get("/api/v1/csrf").get_json()["csrf"]
    r = client.post("/api/v1/auth/logout", headers={"X-CSRF-Token": token})
    assert r.status_code == 200


def test_teacher_cannot_write_reference_catalog(client, world):
    login(client, "ade@greenfield.test")
    r = client.post("/api/v1/reference/subjects", json={"code": "X", "name": "X"})
    assert r.status_code == 403
    assert r.get_json() == {"error": "forbidden"}
