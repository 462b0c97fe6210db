from __future__ import annotations

from fastapi.testclient import TestClient


def _create(client: TestClient, description: str, start: str, end: str, **extra) -> dict:
    payload = {
        "description": description,
        "category": extra.pop("category", "deep"),
        "scheduled_date": extra.pop("scheduled_date", "2025-03-10"),
        "scheduled_start": start,
        "scheduled_end": end,
    }
    response = client.post("/tasks", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_task_defaults_to_today(client) -> None:
    response = client.post(
        "/tasks",
        json={"description": "Inbox zero", "category": "shallow", "scheduled_start": "16:00", "scheduled_end": "16:30"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["scheduled_date"] == "2025-03-10"
    assert body["duration_min"] == 30
    assert body["status"] == "scheduled"
    assert body["outcome"] is None


def test_overlap_is_a_conflict(client) -> None:
    first = _create(client, "Write", "09:00", "11:00")

    response = client.post(
        "/tasks",
        json={
            "description": "Sync",
            "category": "shallow",
            "scheduled_date": "2025-03-10",
            "scheduled_start": "10:30",
            "scheduled_end": "11:00",
        },
    )

    assert response.status_code == 409
    body = response.json()
    assert body["kind"] == "time_block_overlap"
    assert body["conflict_id"] == first["id"]
    assert body["request_id"] == response.headers["X-Request-Id"]


def test_invalid_fields_are_unprocessable(client) -> None:
    response = client.post(
        "/tasks",
        json={"description": "Write", "category": "urgent", "scheduled_start": "09:00", "scheduled_end": "10:00"},
    )

    assert response.status_code == 422
    assert response.json()["kind"] == "invalid_category"


def test_list_tasks(client) -> None:
    _create(client, "Tomorrow", "09:00", "10:00", scheduled_date="2025-03-11")
    _create(client, "Today", "13:00", "14:00")

    today = client.get("/tasks")
    both = client.get("/tasks", params={"from": "2025-03-10", "to": "2025-03-11"})
    backwards = client.get("/tasks", params={"from": "2025-03-11", "to": "2025-03-10"})

    assert [task["description"] for task in today.json()["tasks"]] == ["Today"]
    assert [task["description"] for task in both.json()["tasks"]] == ["Today", "Tomorrow"]
    assert backwards.status_code == 422


def test_get_missing_task(client) -> None:
    response = client.get("/tasks/999")

    assert response.status_code == 404
    assert response.json()["task_id"] == 999


def test_cancel_and_outcome(client) -> None:
    task = _create(client, "Write", "09:00", "10:00")

    cancelled = client.post(f"/tasks/{task['id']}/cancel")
    outcome = client.patch(f"/tasks/{task['id']}/outcome", json={"outcome": "over"})
    bad_outcome = client.patch(f"/tasks/{task['id']}/outcome", json={"outcome": "late"})

    assert cancelled.json()["status"] == "cancelled"
    assert outcome.json()["outcome"] == "over"
    assert bad_outcome.status_code == 422


def test_postpone_with_relative_date(client) -> None:
    task = _create(client, "Write", "09:00", "10:00")

    response = client.post(
        f"/tasks/{task['id']}/postpone",
        json={"new_date": "tomorrow", "scheduled_start": "14:00", "scheduled_end": "15:00"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["postponed_from"] == task["id"]
    assert body["scheduled_date"] == "2025-03-11"
    assert client.get(f"/tasks/{task['id']}").json()["status"] == "postponed"


def test_postpone_rejects_past_dates(client) -> None:
    task = _create(client, "Write", "09:00", "10:00")

    response = client.post(
        f"/tasks/{task['id']}/postpone",
        json={"new_date": "2025-03-01", "scheduled_start": "14:00", "scheduled_end": "15:00"},
    )

    assert response.status_code == 422


def test_edit_task(client) -> None:
    task = _create(client, "Write", "09:00", "10:00")

    renamed = client.patch(f"/tasks/{task['id']}", json={"description": "Write intro"})
    moved = client.patch(f"/tasks/{task['id']}", json={"scheduled_start": "10:00", "scheduled_end": "11:30"})
    half = client.patch(f"/tasks/{task['id']}", json={"scheduled_start": "10:00"})
    blank = client.patch(f"/tasks/{task['id']}", json={"description": "   "})

    assert renamed.json()["description"] == "Write intro"
    assert moved.json()["duration_min"] == 90
    assert half.status_code == 422
    assert blank.status_code == 422
    assert blank.json()["kind"] == "empty_description"


def test_edit_is_all_or_nothing(client) -> None:
    task = _create(client, "Write", "09:00", "10:00")
    _create(client, "Review", "10:00", "11:00")

    clash = client.patch(
        f"/tasks/{task['id']}",
        json={"description": "Write intro", "scheduled_start": "09:30", "scheduled_end": "10:30"},
    )
    blank = client.patch(
        f"/tasks/{task['id']}",
        json={"description": " ", "scheduled_start": "13:00", "scheduled_end": "14:00"},
    )

    assert clash.status_code == 409
    assert blank.status_code == 422
    stored = client.get(f"/tasks/{task['id']}").json()
    assert (stored["description"], stored["scheduled_start"], stored["scheduled_end"]) == ("Write", "09:00", "10:00")


def test_reschedule_many(client) -> None:
    first = _create(client, "First", "09:00", "10:00")
    second = _create(client, "Second", "10:00", "11:00")

    swapped = client.post(
        "/tasks/reschedule",
        json={
            "scheduled_date": "2025-03-10",
            "updates": [
                {"id": first["id"], "scheduled_start": "10:00", "scheduled_end": "11:00"},
                {"id": second["id"], "scheduled_start": "09:00", "scheduled_end": "10:00"},
            ],
        },
    )
    clash = client.post(
        "/tasks/reschedule",
        json={
            "scheduled_date": "2025-03-10",
            "updates": [{"id": first["id"], "scheduled_start": "09:30", "scheduled_end": "10:30"}],
        },
    )

    assert swapped.status_code == 200
    assert [task["scheduled_start"] for task in swapped.json()] == ["10:00", "09:00"]
    assert clash.status_code == 409
