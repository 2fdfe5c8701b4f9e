# tests/test_books_api.py
from uuid import uuid4

import pytest


async def create_book(client, **fields):
    payload = {"title": "Dune", "author": "Frank Herbert", **fields}
    response = await client.post("/api/books", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client):
    """Test the health endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_create_book_defaults(client):
    """Test creating a book with only title and author."""
    book = await create_book(client, title="  Dune  ")
    assert book["title"] == "Dune"
    assert book["status"] == "want_to_read"
    assert book["reviews"] == []
    assert book["average_rating"] == 0.0
    assert book["tags"] == []
    assert "placehold.co" in book["cover_url"]


async def test_create_book_with_isbn_uses_isbn_cover(client):
    """Test that an ISBN gives an Open Library cover URL."""
    book = await create_book(client, isbn="9780441013593")
    assert book["cover_url"].endswith("/b/isbn/9780441013593-L.jpg")


async def test_create_book_with_initial_review(client):
    """Test creating a book together with its first review."""
    book = await create_book(
        client, status="read", review="Spice must flow", rating=5, tags="scifi, classic"
    )
    assert len(book["reviews"]) == 1
    assert book["reviews"][0]["rating"] == 5
    assert book["average_rating"] == 5.0
    assert book["tags"] == ["scifi", "classic"]


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "   ", "author": "Someone"},
        {"title": "Dune", "author": ""},
        {"title": "Dune", "author": "Frank Herbert", "review": "Great"},
        {"title": "Dune", "author": "Frank Herbert", "shelf_id": str(uuid4())},
    ],
)
async def test_create_book_rejects_invalid(client, payload):
    """Test that invalid book payloads are rejected with 400."""
    response = await client.post("/api/books", json=payload)
    assert response.status_code == 400


async def test_create_book_rejects_out_of_range_rating(client):
    """Test schema validation of the initial rating."""
    response = await client.post(
        "/api/books", json={"title": "Dune", "author": "Frank Herbert", "review": "x", "rating": 7}
    )
    assert response.status_code == 422


async def test_get_missing_book(client):
    """Test 404 for an unknown book id."""
    response = await client.get(f"/api/books/{uuid4()}")
    assert response.status_code == 404


async def test_list_filters_and_sort(client):
    """Test listing with status, search, tag and sort parameters."""
    await create_book(client, title="Dune", status="read", tags=["scifi"])
    await create_book(client, title="Anathem", author="Neal Stephenson", tags=["scifi"])
    await create_book(client, title="Emma", author="Jane Austen", status="reading")

    response = await client.get("/api/books", params={"sort_by": "title", "sort_direction": "asc"})
    assert [b["title"] for b in response.json()] == ["Anathem", "Dune", "Emma"]

    response = await client.get("/api/books", params={"status": "read"})
    assert [b["title"] for b in response.json()] == ["Dune"]

    response = await client.get("/api/books", params={"q": "austen"})
    assert [b["title"] for b in response.json()] == ["Emma"]

    response = await client.get("/api/books", params={"tag": "scifi", "sort_by": "title"})
    assert [b["title"] for b in response.json()] == ["Dune", "Anathem"]

    response = await client.get("/api/books", params={"shelf": "reading"})
    assert [b["title"] for b in response.json()] == ["Emma"]


async def test_list_same_day_books_newest_first(client):
    """Test that books added on the same day list most recently created first."""
    for i in range(8):
        await create_book(client, title=f"B{i}")

    response = await client.get("/api/books")
    assert [b["title"] for b in response.json()] == [f"B{i}" for i in reversed(range(8))]

    response = await client.get("/api/books", params={"sort_direction": "asc"})
    assert [b["title"] for b in response.json()] == [f"B{i}" for i in range(8)]


async def test_list_tag_none_is_no_filter(client):
    """Test that tag=none lists every book."""
    await create_book(client, title="Dune", tags=["scifi"])
    await create_book(client, title="Emma", tags=["none-of-these"])

    response = await client.get("/api/books", params={"tag": "none"})
    assert {b["title"] for b in response.json()} == {"Dune", "Emma"}


async def test_list_rejects_unknown_status(client):
    """Test that an unknown status filter is a client error."""
    response = await client.get("/api/books", params={"status": "finished"})
    assert response.status_code == 400


async def test_partial_update(client):
    """Test that an update only touches the fields in the body."""
    book = await create_book(client, isbn="9780441013593", tags=["scifi"])
    response = await client.put(f"/api/books/{book['id']}", json={"title": "Dune Messiah"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Dune Messiah"
    assert updated["author"] == "Frank Herbert"
    assert updated["isbn"] == "9780441013593"
    assert updated["tags"] == ["scifi"]


async def test_update_status_applies_progress_rules(client):
    """Test progress handling across status changes."""
    book = await create_book(client, total_pages=400)
    book_url = f"/api/books/{book['id']}"

    response = await client.put(book_url, json={"status": "reading", "progress": 120})
    assert response.json()["progress"] == 120

    response = await client.put(book_url, json={"status": "read"})
    assert response.json()["progress"] == 400

    response = await client.put(book_url, json={"status": "want_to_read"})
    assert response.json()["progress"] is None


async def test_update_rejects_blank_title_and_missing_book(client):
    """Test update validation and 404."""
    book = await create_book(client)
    response = await client.put(f"/api/books/{book['id']}", json={"title": " "})
    assert response.status_code == 400
    response = await client.put(f"/api/books/{uuid4()}", json={"title": "X"})
    assert response.status_code == 404


async def test_review_lifecycle(client):
    """Test adding, editing and deleting reviews."""
    book = await create_book(client)
    reviews_url = f"/api/books/{book['id']}/reviews"

    response = await client.post(reviews_url, json={"content": "Good", "rating": 4})
    assert response.status_code == 201
    first = response.json()
    await client.post(reviews_url, json={"content": "Better on reread", "rating": 5})

    fetched = (await client.get(f"/api/books/{book['id']}")).json()
    assert len(fetched["reviews"]) == 2
    assert fetched["average_rating"] == 4.5

    response = await client.put(f"{reviews_url}/{first['id']}", json={"rating": 2})
    assert response.status_code == 200
    assert response.json()["rating"] == 2
    assert response.json()["content"] == "Good"

    response = await client.delete(f"{reviews_url}/{first['id']}")
    assert response.status_code == 204
    fetched = (await client.get(f"/api/books/{book['id']}")).json()
    assert [r["content"] for r in fetched["reviews"]] == ["Better on reread"]

    response = await client.delete(f"{reviews_url}/{first['id']}")
    assert response.status_code == 404


async def test_review_validation(client):
    """Test review errors: blank content, bad rating, unknown book."""
    book = await create_book(client)
    reviews_url = f"/api/books/{book['id']}/reviews"
    assert (await client.post(reviews_url, json={"content": "  ", "rating": 3})).status_code == 400
    assert (await client.post(reviews_url, json={"content": "x", "rating": 0})).status_code == 422
    response = await client.post(f"/api/books/{uuid4()}/reviews", json={"content": "x", "rating": 3})
    assert response.status_code == 404


async def test_delete_book(client):
    """Test deleting a book and its reviews."""
    book = await create_book(client, review="Nice", rating=4)
    response = await client.delete(f"/api/books/{book['id']}")
    assert response.status_code == 204
    assert (await client.get(f"/api/books/{book['id']}")).status_code == 404
    assert (await client.delete(f"/api/books/{book['id']}")).status_code == 404


async def test_tags_and_stats(client):
    """Test the tag list and the statistics endpoint."""
    await create_book(client, status="read", total_pages=300, tags=["scifi", "classic"],
                      review="Great", rating=5)
    await create_book(client, title="Anathem", status="reading", tags=["scifi"])
    await create_book(client, title="Emma", tags=["classic", "romance"])

    tags = (await client.get("/api/books/tags")).json()
    assert tags == {"tags": ["classic", "romance", "scifi"]}

    stats = (await client.get("/api/books/stats", params={"top_tags": 2})).json()
    assert stats["total_books"] == 3
    assert stats["count_by_status"] == {"want_to_read": 1, "reading": 1, "read": 1}
    assert stats["average_rating"] == 5.0
    assert stats["total_pages_read"] == 300
    assert stats["total_reviews"] == 1
    assert stats["rating_distribution"]["5"] == 1
    assert len(stats["top_tags"]) == 2
    assert {t["tag"] for t in stats["top_tags"]} == {"scifi", "classic"}
    assert sum(stats["books_by_month"]) == 1


async def test_import_legacy_records(client):
    """Test importing records from the old client, skipping invalid ones."""
    records = [
        {"title": "Dune", "author": "Frank Herbert", "review": "Spice", "rating": 5,
         "dateAdded": "2021-04-02"},
        {"title": "Emma", "author": "Jane Austen", "status": "want_to_read"},
        {"title": "", "author": "Nobody"},
    ]
    response = await client.post("/api/books/import", json={"books": records})
    assert response.status_code == 201
    body = response.json()
    assert body["imported"] == 2
    assert body["skipped"] == 1
    dune = next(b for b in body["books"] if b["title"] == "Dune")
    assert dune["status"] == "read"
    assert dune["date_added"] == "2021-04-02"
    assert dune["reviews"][0]["content"] == "Spice"

    goal = (await client.get("/api/reading-goal")).json()
    assert goal["current"] == 1


async def test_goal_follows_read_status(client):
    """Test that the goal count follows books moving onto and off the read pile."""
    book = await create_book(client, status="read")
    assert (await client.get("/api/reading-goal")).json()["current"] == 1

    await client.put(f"/api/books/{book['id']}", json={"status": "reading"})
    assert (await client.get("/api/reading-goal")).json()["current"] == 0

    await client.put(f"/api/books/{book['id']}", json={"status": "read"})
    await client.delete(f"/api/books/{book['id']}")
    assert (await client.get("/api/reading-goal")).json()["current"] == 0


async def test_goal_target(client):
    """Test setting the yearly target and the manual resync."""
    await create_book(client, status="read")
    goal = (await client.get("/api/reading-goal")).json()
    assert goal["target"] == 24

    response = await client.put("/api/reading-goal", json={"target": 52})
    assert response.status_code == 200
    assert response.json()["target"] == 52
    assert response.json()["current"] == 1

    assert (await client.put("/api/reading-goal", json={"target": 0})).status_code == 422

    response = await client.post("/api/reading-goal/sync")
    assert response.json() == {**goal, "target": 52}
