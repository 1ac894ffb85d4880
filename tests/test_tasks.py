from sqlalchemy import func, select

from conftest import auth, login, register
from taskboard.models.subtask import SubTask
from taskboard.models.task import Task

def setup_project(client):
    owner = register(client, "owner")
    owner_h = auth(login(client, owner["email"]))
    r = client.post("/projects", json={"name": "tasks-project"}, headers=owner_h)
    assert r.status_code == 201, r.text
    return owner, owner_h, r.json()["id"]

def invite(client, headers, project_id, email, role):
    r = client.post(f"/projects/{project_id}/members", json={"email": email, "role": role}, headers=headers)
    assert r.status_code == 200, r.text

def create_task(client, headers, project_id, **payload) -> dict:
    payload.setdefault("title", "task")
    r = client.post(f"/projects/{project_id}/tasks", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()

def test_scenario_c_assignee_must_be_a_project_member(client):
    owner, owner_h, project_id = setup_project(client)
    w = register(client, "w")
    task = create_task(client, owner_h, project_id)
    assert task["assigned_to_id"] is None

    url = f"/projects/{project_id}/tasks/{task['id']}"
    r = client.patch(url, json={"assigned_to_id": w["id"]}, headers=owner_h)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot assign task to user who is not a project member"

    invite(client, owner_h, project_id, w["email"], "VIEWER")

    r = client.patch(url, json={"assigned_to_id": w["id"]}, headers=owner_h)
    assert r.status_code == 200, r.text
    assert r.json()["assigned_to_id"] == w["id"]

    # explicit null unassigns
    r = client.patch(url, json={"assigned_to_id": None}, headers=owner_h)
    assert r.status_code == 200
    assert r.json()["assigned_to_id"] is None

def test_create_task_assignment_checks(client):
    owner, owner_h, project_id = setup_project(client)
    outsider = register(client, "outsider")

    r = client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "t", "assigned_to_id": outsider["id"]},
        headers=owner_h,
    )
    assert r.status_code == 400

    r = client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "t", "assigned_to_id": "00000000-0000-0000-0000-000000000000"},
        headers=owner_h,
    )
    assert r.status_code == 404

    task = create_task(client, owner_h, project_id, assigned_to_id=owner["id"], status="IN_PROGRESS")
    assert task["assigned_to_id"] == owner["id"]
    assert task["status"] == "IN_PROGRESS"

def test_task_roles(client):
    owner, owner_h, project_id = setup_project(client)
    member = register(client, "member")
    viewer = register(client, "viewer")
    manager = register(client, "manager")
    invite(client, owner_h, project_id, member["email"], "MEMBER")
    invite(client, owner_h, project_id, viewer["email"], "VIEWER")
    invite(client, owner_h, project_id, manager["email"], "MANAGER")
    member_h = auth(login(client, member["email"]))
    viewer_h = auth(login(client, viewer["email"]))
    manager_h = auth(login(client, manager["email"]))

    # viewers read but do not write
    r = client.post(f"/projects/{project_id}/tasks", json={"title": "nope"}, headers=viewer_h)
    assert r.status_code == 403

    task = create_task(client, member_h, project_id, title="by member")
    assert task["created_by"] == member["id"]

    r = client.get(f"/projects/{project_id}/tasks", headers=viewer_h)
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [task["id"]]

    url = f"/projects/{project_id}/tasks/{task['id']}"
    r = client.patch(url, json={"status": "DONE"}, headers=member_h)
    assert r.status_code == 200
    assert r.json()["status"] == "DONE"

    # deletes need MANAGER or above
    assert client.delete(url, headers=member_h).status_code == 403
    assert client.delete(url, headers=manager_h).status_code == 200
    assert client.get(url, headers=owner_h).status_code == 404

def test_task_from_another_project_is_not_found(client):
    _, owner_h, project_id = setup_project(client)
    other = client.post("/projects", json={"name": "other-project"}, headers=owner_h).json()["id"]
    task = create_task(client, owner_h, other)

    r = client.get(f"/projects/{project_id}/tasks/{task['id']}", headers=owner_h)
    assert r.status_code == 404

    r = client.patch(f"/projects/{project_id}/tasks/{task['id']}", json={"title": "moved"}, headers=owner_h)
    assert r.status_code == 404

def test_subtasks_are_scoped_to_their_task(client):
    _, owner_h, project_id = setup_project(client)
    t1 = create_task(client, owner_h, project_id, title="t1")
    t2 = create_task(client, owner_h, project_id, title="t2")

    r = client.post(f"/tasks/{t1['id']}/subtasks", json={"title": "s1"}, headers=owner_h)
    assert r.status_code == 201, r.text
    s1 = r.json()
    assert s1["is_completed"] is False

    r = client.patch(f"/tasks/{t2['id']}/subtasks/{s1['id']}", json={"is_completed": True}, headers=owner_h)
    assert r.status_code == 400

    r = client.patch(f"/tasks/{t1['id']}/subtasks/{s1['id']}", json={"is_completed": True}, headers=owner_h)
    assert r.status_code == 200
    assert r.json()["is_completed"] is True

    r = client.get(f"/projects/{project_id}/tasks/{t1['id']}", headers=owner_h)
    assert [s["id"] for s in r.json()["subtasks"]] == [s1["id"]]

    r = client.post(
        "/tasks/00000000-0000-0000-0000-000000000000/subtasks", json={"title": "orphan"}, headers=owner_h
    )
    assert r.status_code == 404

def test_subtask_delete_needs_manager(client):
    owner, owner_h, project_id = setup_project(client)
    member = register(client, "member")
    invite(client, owner_h, project_id, member["email"], "MEMBER")
    member_h = auth(login(client, member["email"]))

    task = create_task(client, owner_h, project_id)
    s = client.post(f"/tasks/{task['id']}/subtasks", json={"title": "s"}, headers=member_h).json()

    url = f"/tasks/{task['id']}/subtasks/{s['id']}"
    assert client.delete(url, headers=member_h).status_code == 403
    assert client.delete(url, headers=owner_h).status_code == 200

def test_project_delete_cascades(client, db_session):
    _, owner_h, project_id = setup_project(client)
    task = create_task(client, owner_h, project_id)
    client.post(f"/tasks/{task['id']}/subtasks", json={"title": "s"}, headers=owner_h)

    assert client.delete(f"/projects/{project_id}", headers=owner_h).status_code == 200

    assert db_session.scalar(select(func.count()).select_from(Task)) == 0
    assert db_session.scalar(select(func.count()).select_from(SubTask)) == 0

def test_removing_a_member_unassigns_their_tasks(client):
    owner, owner_h, project_id = setup_project(client)
    w = register(client, "w")
    invite(client, owner_h, project_id, w["email"], "MEMBER")
    task = create_task(client, owner_h, project_id, assigned_to_id=w["id"])
    other = client.post("/projects", json={"name": "elsewhere"}, headers=owner_h).json()["id"]
    invite(client, owner_h, other, w["email"], "MEMBER")
    kept = create_task(client, owner_h, other, assigned_to_id=w["id"])

    members = client.get(f"/projects/{project_id}/members", headers=owner_h).json()
    member_id = next(m["id"] for m in members if m["user_id"] == w["id"])
    r = client.delete(f"/projects/{project_id}/members/{member_id}", headers=owner_h)
    assert r.status_code == 200, r.text

    url = f"/projects/{project_id}/tasks/{task['id']}"
    assert client.get(url, headers=owner_h).json()["assigned_to_id"] is None

    # re-assigning the former member is checked again
    r = client.patch(url, json={"assigned_to_id": w["id"]}, headers=owner_h)
    assert r.status_code == 400

    r = client.get(f"/projects/{other}/tasks/{kept['id']}", headers=owner_h)
    assert r.json()["assigned_to_id"] == w["id"]

def test_rejected_assignment_writes_nothing(client, db_session):
    _, owner_h, project_id = setup_project(client)
    outsider = register(client, "outsider")
    task = create_task(client, owner_h, project_id, title="before")

    url = f"/projects/{project_id}/tasks/{task['id']}"
    r = client.patch(url, json={"title": "after", "assigned_to_id": outsider["id"]}, headers=owner_h)
    assert r.status_code == 400
    assert client.get(url, headers=owner_h).json()["title"] == "before"

    r = client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "never", "assigned_to_id": outsider["id"]},
        headers=owner_h,
    )
    assert r.status_code == 400
    assert db_session.scalar(select(func.count()).select_from(Task)) == 1
