from bson import ObjectId


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert "timestamp" in body


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Not Found"}


def test_list_courses_envelope(client, make_course):
    make_course(title="Visible")
    make_course(title="Hidden", isPublished=False)

    res = client.get("/api/courses")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert [c["title"] for c in body["data"]] == ["Visible"]
    assert body["pagination"] == {}


def test_list_courses_with_operator_filter(client, make_course):
    make_course(title="Free", price=0)
    make_course(title="Paid", price=99)

    res = client.get("/api/courses", params={"price[gt]": "10"})

    assert [c["title"] for c in res.json()["data"]] == ["Paid"]


def test_get_course_is_public_and_enriched_with_session(client, make_user, make_course, auth_headers):
    course = make_course()
    student = make_user()
    client.post(f"/api/courses/{course['_id']}/purchase", headers=auth_headers(student))

    anonymous = client.get(f"/api/courses/{course['_id']}").json()["data"]
    logged = client.get(f"/api/courses/{course['_id']}", headers=auth_headers(student)).json()["data"]

    assert anonymous["isPurchased"] is False
    assert logged["isPurchased"] is True
    assert logged["totalStudents"] == 1


def test_get_missing_course(client):
    res = client.get(f"/api/courses/{ObjectId()}")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Course not found"}


def test_create_course_requires_session(client, course_data):
    res = client.post("/api/courses", json=course_data())
    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized to access this route"


def test_create_course_as_student_is_forbidden(client, course_data, make_user, auth_headers):
    res = client.post("/api/courses", json=course_data(), headers=auth_headers(make_user()))
    assert res.status_code == 403
    assert res.json()["message"] == "User role student is not authorized to access this route"


def test_create_course_as_instructor(client, course_data, make_user, auth_headers):
    instructor = make_user(role="instructor")

    res = client.post("/api/courses", json=course_data(), headers=auth_headers(instructor))

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["instructor"] == instructor["_id"]
    assert data["totalDuration"] == 1800


def test_create_course_rejects_invalid_body(client, course_data, make_user, auth_headers):
    res = client.post(
        "/api/courses",
        json=course_data(price=-5),
        headers=auth_headers(make_user(role="instructor")),
    )
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert "price" in res.json()["message"]


def test_update_by_other_instructor_is_forbidden(client, make_user, make_course, auth_headers):
    course = make_course()
    other = make_user(role="instructor")

    res = client.put(f"/api/courses/{course['_id']}", json={"title": "Mine now"}, headers=auth_headers(other))

    assert res.status_code == 403
    assert res.json()["message"] == "Not authorized to update this course"


def test_purchase_flow_is_idempotent(store, client, make_user, make_course, auth_headers):
    course = make_course(price=15)
    headers = auth_headers(make_user())

    first = client.post(f"/api/courses/{course['_id']}/purchase", json={"paymentMethod": "card"}, headers=headers)
    second = client.post(f"/api/courses/{course['_id']}/purchase", headers=headers)

    assert first.status_code == 200
    body = first.json()
    assert body["data"]["amount"] == 15
    assert body["data"]["paymentMethod"] == "card"
    assert body["user"]["purchasedCourses"][0]["courseId"] == course["_id"]

    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "Course already purchased"}
    assert store.purchases.count({}) == 1


def test_purchase_archived_course(client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    course = make_course(instructor=instructor)
    client.delete(f"/api/courses/{course['_id']}/soft", headers=auth_headers(instructor))

    res = client.post(f"/api/courses/{course['_id']}/purchase", headers=auth_headers(make_user()))

    assert res.status_code == 400
    assert res.json()["message"] == "This course is no longer available"


def test_archive_and_restore(client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    headers = auth_headers(instructor)
    course = make_course(instructor=instructor)

    archived = client.delete(f"/api/courses/{course['_id']}/soft", headers=headers)
    assert archived.json()["message"] == "Course archived successfully"
    assert client.get("/api/courses").json()["count"] == 0

    restored = client.put(f"/api/courses/{course['_id']}/restore", headers=headers)
    assert restored.status_code == 200
    assert restored.json()["data"]["isDeleted"] is False
    assert restored.json()["data"]["isPublished"] is False


def test_deleted_listing_is_admin_only(client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    course = make_course(instructor=instructor)
    client.delete(f"/api/courses/{course['_id']}/soft", headers=auth_headers(instructor))

    assert client.get("/api/courses/deleted", headers=auth_headers(instructor)).status_code == 403

    res = client.get("/api/courses/deleted", headers=auth_headers(make_user(role="admin")))
    assert res.status_code == 200
    assert res.json()["count"] == 1


def test_hard_delete_cascades(store, client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    course = make_course(instructor=instructor)
    student = make_user()
    client.post(f"/api/courses/{course['_id']}/purchase", headers=auth_headers(student))

    res = client.delete(f"/api/courses/{course['_id']}", headers=auth_headers(instructor))

    assert res.status_code == 200
    assert res.json()["message"] == "Course and all related data deleted successfully"
    assert store.purchases.count({}) == 0
    assert store.users.find_one(student["_id"])["purchasedCourses"] == []
    assert client.get(f"/api/courses/{course['_id']}").status_code == 404


def test_force_delete_admin_only(client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    course = make_course(instructor=instructor)

    by_owner = client.delete(f"/api/courses/{course['_id']}/force", headers=auth_headers(instructor))
    assert by_owner.status_code == 403
    assert by_owner.json()["message"] == "Only admin can force delete courses"

    by_admin = client.delete(f"/api/courses/{course['_id']}/force", headers=auth_headers(make_user(role="admin")))
    assert by_admin.status_code == 200
    assert by_admin.json()["message"] == "Course permanently deleted with all related data"


def test_archived_course_cannot_be_published(client, make_user, make_course, auth_headers):
    instructor = make_user(role="instructor")
    headers = auth_headers(instructor)
    course = make_course(instructor=instructor)
    client.delete(f"/api/courses/{course['_id']}/soft", headers=headers)

    res = client.put(f"/api/courses/{course['_id']}", json={"isPublished": True}, headers=headers)

    assert res.status_code == 400
    assert res.json()["message"] == "Archived courses cannot be published; restore the course first"
    restored = client.put(f"/api/courses/{course['_id']}/restore", headers=headers).json()["data"]
    assert restored["isPublished"] is False
