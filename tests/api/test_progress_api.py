import pytest


@pytest.fixture
def enrolled(client, make_user, make_course, auth_headers):
    student = make_user()
    course = make_course()
    headers = auth_headers(student)
    client.post(f"/api/courses/{course['_id']}/purchase", headers=headers)
    return headers, course


def test_progress_requires_session(client):
    res = client.get("/api/progress")
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_update_and_read_progress(client, enrolled):
    headers, course = enrolled

    res = client.put("/api/progress", json={"courseId": course["_id"], "progress": 40}, headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["progress"] == 40
    assert res.json()["data"]["completed"] is False

    listing = client.get("/api/progress", headers=headers).json()
    assert listing["count"] == 1
    assert listing["data"][0]["courseId"] == course["_id"]
    assert listing["data"][0]["progress"] == 40


@pytest.mark.parametrize("value", [-1, 101])
def test_progress_out_of_range_is_400(client, enrolled, value):
    headers, course = enrolled
    res = client.put("/api/progress", json={"courseId": course["_id"], "progress": value}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Progress must be between 0 and 100"}


def test_progress_for_course_not_purchased(client, make_user, make_course, auth_headers):
    course = make_course()
    res = client.put(
        "/api/progress",
        json={"courseId": course["_id"], "progress": 10},
        headers=auth_headers(make_user()),
    )
    assert res.status_code == 404
    assert res.json()["message"] == "Course not found in user purchases"


def test_complete_course(client, enrolled):
    headers, course = enrolled
    res = client.put(
        "/api/progress",
        json={"courseId": course["_id"], "progress": 80, "completed": True},
        headers=headers,
    )
    assert res.json()["data"]["progress"] == 100
    assert res.json()["data"]["completed"] is True


def test_time_spent_accumulates(client, enrolled):
    headers, course = enrolled

    client.put("/api/progress/time", json={"courseId": course["_id"], "timeSpent": 60}, headers=headers)
    res = client.put("/api/progress/time", json={"courseId": course["_id"], "timeSpent": 30}, headers=headers)

    assert res.status_code == 200
    assert res.json()["data"] == {"timeSpent": 90}


def test_time_spent_negative_is_400(client, enrolled):
    headers, course = enrolled
    res = client.put("/api/progress/time", json={"courseId": course["_id"], "timeSpent": -5}, headers=headers)
    assert res.status_code == 400


def test_progress_nan_is_400(client, enrolled):
    headers, course = enrolled
    # NaN no es JSON estándar pero el parser lo acepta
    res = client.put(
        "/api/progress",
        content=f'{{"courseId": "{course["_id"]}", "progress": NaN}}',
        headers={**headers, "Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Progress must be between 0 and 100"}


def test_time_spent_accepts_fractions(client, enrolled):
    headers, course = enrolled
    res = client.put("/api/progress/time", json={"courseId": course["_id"], "timeSpent": 1.5}, headers=headers)
    assert res.status_code == 200
    assert res.json()["data"] == {"timeSpent": 1.5}
