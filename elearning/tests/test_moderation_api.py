from fastapi.testclient import TestClient


def _auth(profile) -> dict:
    return {"X-User-Id": profile.id}


def _flag(client, reporter, content_id, **overrides):
    payload = {
        "content_type": "card",
        "content_id": content_id,
        "flag_category": "incorrect",
        "flag_reason": "The translation is wrong",
    }
    payload.update(overrides)
    return client.post("/rpc/flag_content", json=payload, headers=_auth(reporter))


def test_flag_and_queue(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    reporter = factory.profile("student")
    admin = factory.profile("admin")
    lesson = factory.lesson(teacher)
    card = factory.card(lesson)

    minor = _flag(client, reporter, card.id, flag_category="spam", flag_reason="ad")
    major = _flag(client, reporter, lesson.id, content_type="lesson", flag_category="offensive")
    queue = client.post("/rpc/get_moderation_queue", json={}, headers=_auth(admin))

    assert minor.status_code == 201
    assert minor.json()["success"] is True
    assert [item["id"] for item in queue.json()] == [major.json()["flag_id"], minor.json()["flag_id"]]
    assert [item["severity_level"] for item in queue.json()] == [4, 1]
    assert queue.json()[0]["reporter_id"] == reporter.id


def test_duplicate_pending_flag(client: TestClient, factory) -> None:
    lesson = factory.lesson(factory.profile("teacher"))
    card = factory.card(lesson)
    reporter = factory.profile("student")
    assert _flag(client, reporter, card.id).status_code == 201
    resp = _flag(client, reporter, card.id)
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


def test_flag_validation(client: TestClient, factory) -> None:
    reporter = factory.profile("student")
    lesson = factory.lesson(factory.profile("teacher"))
    card = factory.card(lesson)

    assert _flag(client, reporter, "missing").status_code == 404
    assert _flag(client, reporter, card.id, flag_reason="  ").status_code == 422
    assert _flag(client, reporter, card.id, flag_category="boring").status_code == 422
    # comments live in another service, so their ids are taken as given
    assert _flag(client, reporter, "comment-1", content_type="comment").status_code == 201


def test_queue_is_admin_only(client: TestClient, factory) -> None:
    resp = client.post("/rpc/get_moderation_queue", json={}, headers=_auth(factory.profile("teacher")))
    assert resp.status_code == 403


def test_anonymous_reporter_hidden(client: TestClient, factory) -> None:
    reporter = factory.profile("student")
    admin = factory.profile("admin")
    _flag(client, reporter, reporter.id, content_type="user_profile", flag_category="other", anonymous=True)

    queue = client.post("/rpc/get_moderation_queue", json={}, headers=_auth(admin)).json()

    assert queue[0]["anonymous_report"] is True
    assert queue[0]["reporter_id"] is None


def test_resolve_flag(client: TestClient, factory) -> None:
    lesson = factory.lesson(factory.profile("teacher"))
    card = factory.card(lesson)
    admin = factory.profile("admin")
    flag_id = _flag(client, factory.profile("student"), card.id).json()["flag_id"]

    reviewing = client.post(
        "/rpc/resolve_flag", json={"flag_id": flag_id, "status": "under_review"}, headers=_auth(admin)
    )
    resolved = client.post(
        "/rpc/resolve_flag",
        json={"flag_id": flag_id, "status": "resolved", "resolution_notes": "Fixed the card"},
        headers=_auth(admin),
    )
    again = client.post("/rpc/resolve_flag", json={"flag_id": flag_id, "status": "dismissed"}, headers=_auth(admin))
    pending = client.post("/rpc/get_moderation_queue", json={}, headers=_auth(admin))
    done = client.post("/rpc/get_moderation_queue", json={"status": "resolved"}, headers=_auth(admin))

    assert reviewing.json()["status"] == "under_review"
    assert reviewing.json()["resolved_by"] is None
    assert resolved.json()["resolved_by"] == admin.id
    assert resolved.json()["resolution_notes"] == "Fixed the card"
    assert again.status_code == 409
    assert pending.json() == []
    assert [item["id"] for item in done.json()] == [flag_id]


def test_queue_limit_bounds(client: TestClient, factory) -> None:
    admin = factory.profile("admin")
    for limit in (-1, 0, 201):
        resp = client.post("/rpc/get_moderation_queue", json={"limit": limit}, headers=_auth(admin))
        assert resp.status_code == 422


def test_moderation_stats(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    admin = factory.profile("admin")
    lesson = factory.lesson(teacher)
    card = factory.card(lesson)
    first, second = factory.profile("student"), factory.profile("student")
    spam = _flag(client, first, card.id, flag_category="spam").json()["flag_id"]
    _flag(client, second, card.id, flag_category="spam")
    _flag(client, first, lesson.id, content_type="lesson", flag_category="offensive")
    client.post("/rpc/resolve_flag", json={"flag_id": spam, "status": "resolved"}, headers=_auth(admin))

    resp = client.post("/rpc/get_moderation_stats", headers=_auth(admin))

    assert resp.status_code == 200
    stats = resp.json()
    assert stats["total_flags"] == 3
    assert stats["pending_flags"] == 2
    assert stats["resolved_flags"] == 1
    assert stats["by_status"] == {"pending": 2, "under_review": 0, "resolved": 1, "dismissed": 0}
    assert stats["by_severity"] == {"1": 2, "2": 0, "3": 0, "4": 1, "5": 0}
    assert stats["top_categories"] == [{"category": "spam", "count": 2}, {"category": "offensive", "count": 1}]
    assert stats["avg_resolution_time_hours"] >= 0.0


def test_moderation_stats_admin_only(client: TestClient, factory) -> None:
    resp = client.post("/rpc/get_moderation_stats", headers=_auth(factory.profile("teacher")))
    assert resp.status_code == 403
