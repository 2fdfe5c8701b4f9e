# tests/test_profile_api.py


async def test_default_profile(client):
    """Test that the profile is created from defaults on first read."""
    response = await client.get("/api/profile")
    assert response.status_code == 200
    profile = response.json()
    assert profile["name"] == "Reader"
    assert profile["library_name"] == "My Library"


async def test_update_profile(client):
    """Test a partial profile update."""
    response = await client.put("/api/profile", json={"name": " Ada ", "bio": "Reads a lot"})
    assert response.status_code == 200
    profile = response.json()
    assert profile["name"] == "Ada"
    assert profile["bio"] == "Reads a lot"
    assert profile["library_name"] == "My Library"

    assert (await client.get("/api/profile")).json()["name"] == "Ada"


async def test_update_profile_rejects_blank_name(client):
    """Test that name and library name cannot be blanked."""
    assert (await client.put("/api/profile", json={"name": "  "})).status_code == 400
    assert (await client.put("/api/profile", json={"library_name": ""})).status_code == 400
