from app.models.user import UserRole


def test_admin_manages_subgroups(client, make_user, make_group, make_subject, auth_headers):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    subject = make_subject("Finance")
    headers = auth_headers(admin)
    base_url = f"/api/groups/{group.id}/subgroups"

    scoped = client.post(
        base_url,
        json={"subjectId": subject.id, "name": "Finance 2", "number": 2},
        headers=headers,
    )
    wide = client.post(base_url, json={"name": "Half 1", "number": 1}, headers=headers)
    assert scoped.status_code == 201
    assert wide.status_code == 201
    assert scoped.json()["subjectId"] == subject.id
    assert wide.json()["subjectId"] is None

    listed = client.get(base_url, headers=headers).json()
    assert [item["id"] for item in listed] == [wide.json()["id"], scoped.json()["id"]]

    filtered = client.get(base_url, params={"subjectId": subject.id}, headers=headers).json()
    assert [item["id"] for item in filtered] == [scoped.json()["id"]]

    renamed = client.patch(f"{base_url}/{wide.json()['id']}", json={"name": "First half"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "First half"
    assert renamed.json()["number"] == 1


def test_duplicate_number_in_same_scope_is_rejected(client, make_user, make_group, make_subject, auth_headers):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    subject = make_subject("Finance")
    headers = auth_headers(admin)
    base_url = f"/api/groups/{group.id}/subgroups"

    assert client.post(base_url, json={"name": "A", "number": 1}, headers=headers).status_code == 201
    assert client.post(base_url, json={"name": "B", "number": 1}, headers=headers).status_code == 400
    # same number under a subject is a different scope
    assert (
        client.post(base_url, json={"name": "C", "number": 1, "subjectId": subject.id}, headers=headers).status_code
        == 201
    )


def test_create_subgroup_validates_references(client, make_user, make_group, auth_headers):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    headers = auth_headers(admin)

    assert client.post("/api/groups/missing/subgroups", json={"name": "A", "number": 1}, headers=headers).status_code == 404
    assert (
        client.post(
            f"/api/groups/{group.id}/subgroups",
            json={"name": "A", "number": 1, "subjectId": "missing"},
            headers=headers,
        ).status_code
        == 404
    )
    assert (
        client.post(f"/api/groups/{group.id}/subgroups", json={"name": "A", "number": 0}, headers=headers).status_code
        == 422
    )


def test_deleted_subgroup_leaves_listing_and_resolution(
    client, make_user, make_group, make_subject, make_subgroup, auth_headers
):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    subject = make_subject("Finance")
    subgroup = make_subgroup(group, 4, subject=subject)
    headers = auth_headers(admin)

    response = client.delete(f"/api/groups/{group.id}/subgroups/{subgroup.id}", headers=headers)
    assert response.status_code == 200
    assert client.get(f"/api/groups/{group.id}/subgroups", headers=headers).json() == []

    created = client.post(
        "/api/schedules",
        json={
            "subjectId": subject.id,
            "groupId": group.id,
            "subgroupId": "4",
            "date": "2025-03-14",
            "startTime": "09:00",
            "endTime": "10:30",
        },
        headers=headers,
    )
    assert created.json()["subgroupId"] is None


def test_subgroup_writes_require_admin(client, make_user, make_group, make_subgroup, auth_headers):
    lecturer = make_user(UserRole.lecturer)
    group = make_group("ECON-21")
    subgroup = make_subgroup(group, 1)
    headers = auth_headers(lecturer)

    assert client.post(f"/api/groups/{group.id}/subgroups", json={"name": "A", "number": 2}, headers=headers).status_code == 403
    assert client.delete(f"/api/groups/{group.id}/subgroups/{subgroup.id}", headers=headers).status_code == 403
    assert client.get(f"/api/groups/{group.id}/subgroups/{subgroup.id}", headers=headers).status_code == 200


def test_subgroup_lookup_is_scoped_to_group(client, make_user, make_group, make_subgroup, auth_headers):
    admin = make_user(UserRole.admin)
    group = make_group("ECON-21")
    other = make_group("LAW-21")
    subgroup = make_subgroup(other, 1)

    response = client.get(f"/api/groups/{group.id}/subgroups/{subgroup.id}", headers=auth_headers(admin))

    assert response.status_code == 404


def test_mentor_assigns_student_subgroups(client, make_user, make_group, auth_headers):
    group = make_group("ECON-21")
    mentor = make_user(UserRole.mentor, mentor_group_ids=[group.id])
    student = make_user(UserRole.student, group_id=group.id)
    url = f"/api/groups/{group.id}/students/{student.id}/subgroups"

    first = client.put(url, json={"subgroupCommerce": 1, "subgroupFinance": 2}, headers=auth_headers(mentor))
    assert first.status_code == 200
    assert first.json()["subgroupCommerce"] == 1
    assert first.json()["subgroupFinance"] == 2

    # omitted dimensions are cleared on the next write
    second = client.put(url, json={"subgroupTutorial": 3}, headers=auth_headers(mentor))
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["subgroupCommerce"] is None
    assert second.json()["subgroupFinance"] is None
    assert second.json()["subgroupTutorial"] == 3

    own_view = client.get(url, headers=auth_headers(student))
    assert own_view.status_code == 200
    assert own_view.json()["subgroupTutorial"] == 3


def test_membership_update_rules(client, make_user, make_group, auth_headers):
    group = make_group("ECON-21")
    other = make_group("LAW-21")
    admin = make_user(UserRole.admin)
    student = make_user(UserRole.student, group_id=group.id)
    outsider = make_user(UserRole.student, group_id=other.id)

    denied = client.put(
        f"/api/groups/{group.id}/students/{student.id}/subgroups",
        json={"subgroupCommerce": 1},
        headers=auth_headers(student),
    )
    wrong_group = client.put(
        f"/api/groups/{group.id}/students/{outsider.id}/subgroups",
        json={"subgroupCommerce": 1},
        headers=auth_headers(admin),
    )
    missing_row = client.get(
        f"/api/groups/{group.id}/students/{student.id}/subgroups",
        headers=auth_headers(admin),
    )

    assert denied.status_code == 403
    assert wrong_group.status_code == 400
    assert missing_row.status_code == 404


def test_group_lifecycle(client, make_user, auth_headers):
    admin = make_user(UserRole.admin)
    student = make_user(UserRole.student)
    headers = auth_headers(admin)

    created = client.post("/api/groups", json={"name": "ECON-21", "semester": 2, "year": 2025}, headers=headers)
    assert created.status_code == 201
    assert client.post("/api/groups", json={"name": "ECON-21"}, headers=headers).status_code == 409
    assert client.post("/api/groups", json={"name": "LAW-21"}, headers=auth_headers(student)).status_code == 403

    group_id = created.json()["id"]
    updated = client.put(f"/api/groups/{group_id}", json={"description": "Economics"}, headers=headers)
    assert updated.json()["description"] == "Economics"

    assert client.delete(f"/api/groups/{group_id}", headers=headers).status_code == 200
    assert client.get("/api/groups", headers=headers).json() == []
    archived = client.get("/api/groups", params={"include_inactive": "true"}, headers=headers).json()
    assert [item["is_active"] for item in archived] == [False]
