# tests/test_shelves_api.py
from uuid import uuid4


async def create_shelf(client, name):
    response = await client.post("/api/shelves", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_and_list_shelves(client):
    """Test that shelves are listed in creation order with book counts."""
    favourites = await create_shelf(client, "Favourites")
    await create_shelf(client, "  Book club ")
    await client.post(
        "/api/books",
        json={"title": "Dune", "author": "Frank Herbert", "shelf_id": favourites["id"]},
    )

    shelves = (await client.get("/api/shelves")).json()
    assert [s["name"] for s in shelves] == ["Favourites", "Book club"]
    assert [s["book_count"] for s in shelves] == [1, 0]


async def test_duplicate_shelf_name_conflicts(client):
    """Test that shelf names are unique on create and rename."""
    await create_shelf(client, "Favourites")
    other = await create_shelf(client, "Later")
    assert (await client.post("/api/shelves", json={"name": "Favourites"})).status_code == 409
    response = await client.put(f"/api/shelves/{other['id']}", json={"name": "Favourites"})
    assert response.status_code == 409


async def test_rename_shelf(client):
    """Test renaming, including keeping the same name."""
    shelf = await create_shelf(client, "Favourites")
    response = await client.put(f"/api/shelves/{shelf['id']}", json={"name": "Favourites"})
    assert response.status_code == 200
    response = await client.put(f"/api/shelves/{shelf['id']}", json={"name": "Best"})
    assert response.json()["name"] == "Best"
    assert (await client.put(f"/api/shelves/{shelf['id']}", json={"name": " "})).status_code == 400
    response = await client.put(f"/api/shelves/{uuid4()}", json={"name": "Ghost"})
    assert response.status_code == 404


async def test_delete_shelf_unshelves_books(client):
    """Test that deleting a shelf keeps its books but clears their shelf."""
    shelf = await create_shelf(client, "Favourites")
    book = (
        await client.post(
            "/api/books", json={"title": "Dune", "author": "Frank Herbert", "shelf_id": shelf["id"]}
        )
    ).json()

    response = await client.get("/api/books", params={"shelf": shelf["id"]})
    assert [b["id"] for b in response.json()] == [book["id"]]
    response = await client.get("/api/books", params={"shelf": shelf["id"].upper()})
    assert [b["id"] for b in response.json()] == [book["id"]]

    assert (await client.delete(f"/api/shelves/{shelf['id']}")).status_code == 204
    fetched = (await client.get(f"/api/books/{book['id']}")).json()
    assert fetched["shelf_id"] is None
    assert (await client.delete(f"/api/shelves/{shelf['id']}")).status_code == 404


async def test_move_book_between_shelves(client):
    """Test setting and clearing a book's shelf through updates."""
    shelf = await create_shelf(client, "Favourites")
    book = (await client.post("/api/books", json={"title": "Dune", "author": "F. H."})).json()
    book_url = f"/api/books/{book['id']}"

    response = await client.put(book_url, json={"shelf_id": shelf["id"]})
    assert response.json()["shelf_id"] == shelf["id"]

    response = await client.put(book_url, json={"shelf_id": ""})
    assert response.json()["shelf_id"] is None

    response = await client.put(book_url, json={"shelf_id": str(uuid4())})
    assert response.status_code == 400
