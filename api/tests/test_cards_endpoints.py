import pytest


def provision(client, user_id="user-1", level="A1", language="fr"):
    response = client.post("/api/v1/cards/provision", json={"user_id": user_id, "level": level, "language": language})
    assert response.status_code == 200
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy"}


def test_provision_and_list_cards(client):
    body = provision(client, level="A2")

    assert body["created_count"] == len(body["cards"])
    assert {card["level"] for card in body["cards"]} == {"A1", "A2"}

    listing = client.get("/api/v1/cards", params={"user_id": "user-1"}).json()
    assert listing["count"] == body["created_count"]

    vocabulary = client.get("/api/v1/cards", params={"user_id": "user-1", "kind": "vocabulary"}).json()
    assert {card["kind"] for card in vocabulary["cards"]} == {"vocabulary"}

    again = provision(client, level="A2")
    assert again["created_count"] == 0


def test_review_queue_and_scheduling(client):
    provision(client)
    queue = client.get("/api/v1/cards/review-queue", params={"user_id": "user-1"}).json()
    assert queue["count"] > 0
    due_dates = [card["next_review_at"] for card in queue["cards"]]
    assert due_dates == sorted(due_dates)

    card_id = queue["cards"][0]["id"]
    response = client.post(f"/api/v1/cards/{card_id}/schedule", json={"quality": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["interval"] == 1
    assert body["repetitions"] == 1
    assert body["ease_factor"] == pytest.approx(2.6)
    assert body["interval_label"] == "tomorrow"
    assert body["card"]["version"] == queue["cards"][0]["version"] + 1

    queue_after = client.get("/api/v1/cards/review-queue", params={"user_id": "user-1"}).json()
    assert card_id not in [card["id"] for card in queue_after["cards"]]
    assert queue_after["count"] == queue["count"] - 1


def test_schedule_rejects_out_of_range_quality(client):
    card_id = provision(client)["cards"][0]["id"]

    response = client.post(f"/api/v1/cards/{card_id}/schedule", json={"quality": 7})

    assert response.status_code == 400
    assert response.json()["type"] == "InvalidArgumentError"
    assert client.get(f"/api/v1/cards/{card_id}").json()["repetitions"] == 0


def test_schedule_rejects_non_integer_quality(client):
    card_id = provision(client)["cards"][0]["id"]

    response = client.post(f"/api/v1/cards/{card_id}/schedule", json={"quality": "great"})

    assert response.status_code == 422


def test_unknown_card(client):
    assert client.get("/api/v1/cards/999").status_code == 404
    response = client.post("/api/v1/cards/999/schedule", json={"quality": 4})
    assert response.status_code == 404
    assert response.json()["type"] == "NotFoundError"
    assert client.post("/api/v1/cards/999/reset").status_code == 404


def test_reset_card(client):
    card_id = provision(client)["cards"][0]["id"]
    client.post(f"/api/v1/cards/{card_id}/schedule", json={"quality": 4})

    response = client.post(f"/api/v1/cards/{card_id}/reset")

    assert response.status_code == 200
    card = response.json()
    assert card["interval"] == 0
    assert card["repetitions"] == 0
    assert card["ease_factor"] == 2.5


def test_due_summary(client):
    body = provision(client, level="A2")

    summary = client.get("/api/v1/cards/due-summary", params={"user_id": "user-1"}).json()

    assert summary["total"] == body["created_count"]
    assert summary["due"] == body["created_count"]
    assert [level["level"] for level in summary["levels"]] == ["A1", "A2", "B1", "B2", "C1", "C2"]
    b1 = next(level for level in summary["levels"] if level["level"] == "B1")
    assert b1 == {"level": "B1", "count": 0, "count_due": 0, "count_not_due": 0}


def test_import_progress(client):
    response = client.post("/api/v1/cards/import", json={
        "user_id": "user-1",
        "records": [
            {"topicId": "fr-a1-articles", "nextReview": "2099-01-01T00:00:00Z", "easeFactor": 2.6,
             "interval": 6, "repetitions": 2},
            {"card_id": "v-fr-0001", "next_review": "2000-01-01T00:00:00Z"},
        ],
    })

    assert response.status_code == 200
    assert response.json()["created_count"] == 2

    queue = client.get("/api/v1/cards/review-queue", params={"user_id": "user-1"}).json()
    assert [card["topic_id"] for card in queue["cards"]] == ["v-fr-0001"]


def test_import_rejects_malformed_batch(client):
    response = client.post("/api/v1/cards/import", json={
        "user_id": "user-1",
        "records": [
            {"topicId": "fr-a1-articles", "nextReview": "2099-01-01T00:00:00Z"},
            {"nextReview": "2099-01-01T00:00:00Z"},
        ],
    })

    assert response.status_code == 400
    assert client.get("/api/v1/cards", params={"user_id": "user-1"}).json()["count"] == 0


def test_complete_practice(client):
    card_id = provision(client)["cards"][0]["id"]
    results = [{"is_correct": True}] * 6 + [{"is_correct": False}] * 4

    response = client.post("/api/v1/practice/complete", json={"card_id": card_id, "results": results})

    assert response.status_code == 200
    body = response.json()
    assert body["session"]["state"] == "ended"
    assert body["session"]["practice_type"] == "written_translation"
    assert body["session"]["correct_percentage"] == pytest.approx(0.6)
    assert body["session"]["final_quality"] == 3
    assert body["card"]["repetitions"] == 1
    assert body["card"]["practice_stats"]["written_translation"]["attempts"] == 10
    assert body["card"]["practice_stats"]["written_translation"]["correct"] == 6


def test_complete_practice_rejects_bad_pronunciation_score(client):
    card_id = provision(client)["cards"][0]["id"]

    response = client.post("/api/v1/practice/complete", json={
        "card_id": card_id,
        "practice_type": "repeat_aloud",
        "results": [{"is_correct": True, "pronunciation_score": 140}],
    })

    assert response.status_code == 422


def test_complete_practice_unknown_card(client):
    response = client.post("/api/v1/practice/complete", json={"card_id": 999, "results": []})

    assert response.status_code == 404


def test_score_repeat_aloud(client):
    response = client.post("/api/v1/practice/score-repeat-aloud", json={
        "transcript": "Bonjour tout le monde",
        "target_text": "bonjour tout le monde",
    })

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["pronunciation_score"] == 100
    assert result["is_correct"] is True


def test_new_cards_shrink_as_cards_are_reviewed(client):
    provision(client, level="A2")

    new_cards = client.get("/api/v1/cards/new", params={"user_id": "user-1"}).json()
    assert new_cards["count"] == 5

    client.post(f"/api/v1/cards/{new_cards['cards'][0]['id']}/schedule-auto", json={"correct": True})
    after = client.get("/api/v1/cards/new", params={"user_id": "user-1", "limit": 50}).json()
    assert new_cards["cards"][0]["id"] not in [card["id"] for card in after["cards"]]

    assert client.get("/api/v1/cards/new", params={"user_id": "user-1", "limit": -1}).status_code == 422


def test_schedule_auto(client):
    card_id = provision(client)["cards"][0]["id"]

    right = client.post(f"/api/v1/cards/{card_id}/schedule-auto", json={"correct": True}).json()
    assert right["interval"] == 1
    assert right["ease_factor"] == pytest.approx(2.5)

    wrong = client.post(f"/api/v1/cards/{card_id}/schedule-auto", json={"correct": False}).json()
    assert wrong["interval"] == 0
    assert wrong["repetitions"] == 0
    assert wrong["interval_label"] == "today"

    assert client.post("/api/v1/cards/999/schedule-auto", json={"correct": True}).status_code == 404


def test_practice_queue_follows_practice_stats(client):
    cards = provision(client)["cards"]
    practiced_id = cards[0]["id"]
    client.post("/api/v1/practice/complete", json={
        "card_id": practiced_id,
        "practice_type": "repeat_aloud",
        "results": [{"is_correct": True, "pronunciation_score": 95}],
    })

    repeat_aloud = client.get(
        "/api/v1/cards/practice-queue", params={"user_id": "user-1", "practice_type": "repeat_aloud"}
    ).json()
    written = client.get("/api/v1/cards/practice-queue", params={"user_id": "user-1"}).json()

    assert repeat_aloud["count"] == len(cards)
    assert repeat_aloud["cards"][-1]["id"] == practiced_id
    assert written["cards"][0]["id"] == practiced_id
