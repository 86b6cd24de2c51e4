from datetime import timedelta

from fastapi import status


def setup_review(client, make_review):
    client.post("/users", json={"email": "bob@example.com"})
    return client.post("/reviews", json=make_review()).json()["insertedId"]


def test_add_check_and_remove(client, db_session, make_review):
    review_id = setup_review(client, make_review)
    check = {"userEmail": "bob@example.com"}

    assert client.get(f"/watchlist/check/{review_id}", params=check).json() == {
        "isInWatchlist": False
    }

    response = client.post(
        "/watchlist/add",
        json={"reviewId": review_id, "userEmail": "bob@example.com", "title": "Hollow Knight"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["insertedId"]

    entry = db_session.watchlist.find_one({"reviewId": review_id})
    assert entry["title"] == "Hollow Knight"
    assert entry["addedAt"] is not None
    assert client.get(f"/watchlist/check/{review_id}", params=check).json()["isInWatchlist"]
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == [review_id]

    removed = client.delete(f"/watchlist/{review_id}", params=check)
    assert removed.status_code == status.HTTP_200_OK
    assert removed.json() == {"message": "Removed from watchlist successfully"}
    assert not client.get(f"/watchlist/check/{review_id}", params=check).json()["isInWatchlist"]
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == []


def test_uppercase_review_id_is_stored_canonically(client, db_session, make_review):
    review_id = setup_review(client, make_review)
    check = {"userEmail": "bob@example.com"}

    response = client.post(
        "/watchlist/add", json={"reviewId": review_id.upper(), "userEmail": "bob@example.com"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert db_session.watchlist.find_one({})["reviewId"] == review_id
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == [review_id]
    assert client.get(f"/watchlist/check/{review_id.upper()}", params=check).json() == {
        "isInWatchlist": True
    }

    deleted = client.delete(f"/reviews/{review_id}", params={"userEmail": "alice@example.com"})
    assert deleted.status_code == status.HTTP_200_OK
    assert db_session.watchlist.count_documents({}) == 0
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == []


def test_remove_accepts_uppercase_review_id(client, db_session, make_review):
    review_id = setup_review(client, make_review)
    client.post("/watchlist/add", json={"reviewId": review_id, "userEmail": "bob@example.com"})

    removed = client.delete(
        f"/watchlist/{review_id.upper()}", params={"userEmail": "bob@example.com"}
    )
    assert removed.status_code == status.HTTP_200_OK
    assert db_session.watchlist.count_documents({}) == 0
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == []


def test_add_duplicate_is_conflict(client, db_session, make_review):
    review_id = setup_review(client, make_review)
    payload = {"reviewId": review_id, "userEmail": "bob@example.com"}

    assert client.post("/watchlist/add", json=payload).status_code == status.HTTP_201_CREATED
    second = client.post("/watchlist/add", json=payload)
    assert second.status_code == status.HTTP_400_BAD_REQUEST
    assert second.json()["message"] == "Already in watchlist"
    assert db_session.watchlist.count_documents({}) == 1
    assert db_session.users.find_one({"email": "bob@example.com"})["watchlist"] == [review_id]


def test_add_requires_fields(client):
    response = client.post("/watchlist/add", json={"userEmail": "bob@example.com"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "reviewId is required"

    response = client.post("/watchlist/add", json={"reviewId": "64b7f0f0f0f0f0f0f0f0f0f0"})
    assert response.json()["message"] == "userEmail is required"


def test_add_unknown_review(client):
    response = client.post(
        "/watchlist/add",
        json={"reviewId": "64b7f0f0f0f0f0f0f0f0f0f0", "userEmail": "bob@example.com"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_check_requires_email(client):
    response = client.get("/watchlist/check/64b7f0f0f0f0f0f0f0f0f0f0")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "User email is required"


def test_remove_requires_email_and_existing_entry(client):
    missing_email = client.delete("/watchlist/64b7f0f0f0f0f0f0f0f0f0f0")
    assert missing_email.status_code == status.HTTP_400_BAD_REQUEST

    missing_entry = client.delete(
        "/watchlist/64b7f0f0f0f0f0f0f0f0f0f0", params={"userEmail": "bob@example.com"}
    )
    assert missing_entry.status_code == status.HTTP_404_NOT_FOUND
    assert missing_entry.json()["message"] == "Item not found in watchlist"


def test_user_watchlist_newest_first(client, db_session, make_review):
    client.post("/users", json={"email": "bob@example.com"})
    first = client.post("/reviews", json=make_review(title="First")).json()["insertedId"]
    second = client.post("/reviews", json=make_review(title="Second")).json()["insertedId"]
    for review_id in (first, second):
        client.post("/watchlist/add", json={"reviewId": review_id, "userEmail": "bob@example.com"})
    latest = db_session.watchlist.find_one({"reviewId": second})["addedAt"]
    db_session.watchlist.update_one(
        {"reviewId": first}, {"$set": {"addedAt": latest - timedelta(days=1)}}
    )

    entries = client.get("/users/bob@example.com/watchlist").json()
    assert [entry["reviewId"] for entry in entries] == [second, first]
