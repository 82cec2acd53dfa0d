from bson import ObjectId

FEEDBACK = {
    "name": "Asha Rao",
    "email": "asha@dealer.in",
    "subject": "Showroom visit",
    "message": "Staff at the Indiranagar showroom were very helpful",
    "feedbackType": "praise",
}


def test_submit_feedback(client, db):
    resp = client.post("/api/feedback/submit", json=FEEDBACK)
    assert resp.status_code == 201
    feedback = resp.json()["feedback"]
    assert feedback["feedbackType"] == "praise"
    assert feedback["userId"] is None
    assert feedback["createdAt"]
    assert db["feedback"].count_documents({}) == 1


def test_submit_feedback_with_user(client, user):
    resp = client.post("/api/feedback/submit", json={**FEEDBACK, "userId": user["_id"]})
    assert resp.status_code == 201
    assert resp.json()["feedback"]["userId"] == user["_id"]


def test_unknown_feedback_type_falls_back_to_suggestion(client, db):
    resp = client.post("/api/feedback/submit", json={**FEEDBACK, "feedbackType": "rant"})
    assert resp.status_code == 201
    assert resp.json()["feedback"]["feedbackType"] == "suggestion"


def test_submit_feedback_missing_fields(client, db):
    resp = client.post("/api/feedback/submit", json={"name": "Asha", "message": " "})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Missing required fields: email, subject, message"}


def test_submit_feedback_malformed_user_id(client, db):
    resp = client.post("/api/feedback/submit", json={**FEEDBACK, "userId": "12345"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid user id"


def test_list_and_get_feedback(client, db):
    feedback_id = client.post("/api/feedback/submit", json=FEEDBACK).json()["feedback"]["_id"]
    client.post("/api/feedback/submit", json={**FEEDBACK, "subject": "Pricing"})

    listing = client.get("/api/feedback/all")
    assert listing.status_code == 200
    assert len(listing.json()["feedbacks"]) == 2

    single = client.get(f"/api/feedback/{feedback_id}")
    assert single.status_code == 200
    assert single.json()["feedback"]["subject"] == "Showroom visit"


def test_get_unknown_feedback(client, db):
    resp = client.get(f"/api/feedback/{ObjectId()}")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Feedback not found"
