def _register(client, **overrides):
    payload = {"name": "Grace", "email": "grace@example.com", "password": "hopper42"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_token_and_user(client):
    res = _register(client)

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["token"]
    assert data["user"]["email"] == "grace@example.com"
    assert data["user"]["role"] == "student"
    assert "password" not in data["user"]


def test_register_duplicate_email(client):
    _register(client)
    res = _register(client, email="GRACE@example.com")
    assert res.status_code == 409
    assert res.json() == {"success": False, "message": "User already exists"}


def test_register_cannot_self_assign_admin(client):
    res = _register(client, role="admin")
    assert res.status_code == 400


def test_register_short_password(client):
    assert _register(client, password="123").status_code == 400


def test_login_me_logout(client):
    _register(client, role="instructor")

    login = client.post("/api/auth/login", json={"email": "grace@example.com", "password": "hopper42"})
    assert login.status_code == 200
    data = login.json()["data"]
    assert data["auth_header"] == f"Bearer {data['token']}"
    assert data["expires_in"] == 86400
    headers = {"Authorization": data["auth_header"]}

    me = client.get("/api/auth/me", headers=headers)
    assert me.json()["data"]["role"] == "instructor"

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_session_header_alternative(client):
    token = _register(client).json()["data"]["token"]
    res = client.get("/api/auth/me", headers={"X-Session-Id": token})
    assert res.status_code == 200


def test_login_wrong_password(client):
    _register(client)
    res = client.post("/api/auth/login", json={"email": "grace@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid credentials"


def test_unknown_token_is_anonymous(client):
    res = client.get("/api/auth/me", headers={"Authorization": "Bearer deadbeef"})
    assert res.status_code == 401
