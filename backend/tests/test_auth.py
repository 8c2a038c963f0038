from app.models.user import UserRole


def _register(client, email="ada@example.com", role="lecturer", **extra):
    body = {"name": "Ada Lovelace", "email": email, "password": "correct-horse", "role": role}
    body.update(extra)
    return client.post("/api/auth/register", json=body)


def test_register_login_and_me(client):
    registered = _register(client, email="Ada@Example.com")
    assert registered.status_code == 201
    assert registered.json()["email"] == "ada@example.com"

    login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["user"]["role"] == "lecturer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == registered.json()["id"]


def test_duplicate_registration_conflicts(client):
    assert _register(client).status_code == 201
    assert _register(client).status_code == 409


def test_mentor_groups_are_kept_only_for_mentors(client):
    mentor = _register(client, email="mentor@example.com", role="mentor", mentor_group_ids=["g-1", " g-1 ", "g-2"])
    student = _register(client, email="student@example.com", role="student", mentor_group_ids=["g-1"])

    assert mentor.json()["mentor_group_ids"] == ["g-1", "g-2"]
    assert student.json()["mentor_group_ids"] == []


def test_login_rejects_bad_credentials_and_role_mismatch(client):
    _register(client)

    wrong_password = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-horse"})
    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "ada@example.com", "password": "correct-horse", "role": "admin"},
    )

    assert wrong_password.status_code == 401
    assert wrong_role.status_code == 403


def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_inactive_user_is_forbidden(client, db_session, make_user, auth_headers):
    user = make_user(UserRole.student)
    user.is_active = False
    db_session.commit()

    assert client.get("/api/auth/me", headers=auth_headers(user)).status_code == 403


def test_login_is_audited(client, make_user, auth_headers):
    admin = make_user(UserRole.admin)
    registered = _register(client).json()
    client.post("/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"})

    logs = client.get(
        "/api/activity/logs",
        params={"entity_type": "User", "entity_id": registered["id"]},
        headers=auth_headers(admin),
    ).json()

    assert [(item["action"], item["result"]) for item in logs] == [("LOGIN", "SUCCESS")]


def test_subject_lecturer_must_be_a_lecturer(client, make_user, auth_headers):
    admin = make_user(UserRole.admin)
    lecturer = make_user(UserRole.lecturer)
    student = make_user(UserRole.student)
    headers = auth_headers(admin)

    created = client.post("/api/subjects", json={"name": "Finance", "lecturer_id": lecturer.id}, headers=headers)
    assert created.status_code == 201
    assert created.json()["lecturer_id"] == lecturer.id

    assert client.post("/api/subjects", json={"name": "Law", "lecturer_id": student.id}, headers=headers).status_code == 404
    assert client.post("/api/subjects", json={"name": "Law"}, headers=auth_headers(lecturer)).status_code == 403

    renamed = client.put(f"/api/subjects/{created.json()['id']}", json={"name": "Corporate Finance"}, headers=headers)
    assert renamed.json()["name"] == "Corporate Finance"
    assert [item["name"] for item in client.get("/api/subjects", headers=headers).json()] == ["Corporate Finance"]
