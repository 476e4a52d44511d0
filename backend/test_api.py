import os

os.environ["PERSISTABLES_DB"] = ":memory:"

from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def register_owner(first_name="Jan", last_name="Kowalski"):
    response = client.post("/api/owners", json={
        "first_name": first_name,
        "last_name": last_name,
        "email": f"{first_name.lower()}@example.com",
        "phone": "555-0100",
    })
    assert response.status_code == 200
    return response.json()


def add_pet(owner_id, name="Rex", species="dog"):
    response = client.post("/api/pets", json={
        "owner_id": owner_id,
        "name": name,
        "species": species,
        "breed": "mixed",
        "birth_date": "2020-01-01",
    })
    assert response.status_code == 200
    return response.json()


def test_register_and_fetch_owner():
    owner = register_owner("Anna", "Nowak")

    assert owner["owner_id"] > 0
    response = client.get(f"/api/owners/{owner['owner_id']}")
    assert response.status_code == 200
    assert response.json()["last_name"] == "Nowak"
    assert response.json()["pets"] == []


def test_list_owners_with_filter():
    register_owner("Zofia", "Filterable")

    response = client.get("/api/owners", params={"last_name": "filterab"})
    assert [o["first_name"] for o in response.json()] == ["Zofia"]


def test_update_owner():
    owner = register_owner("Piotr")

    response = client.put(f"/api/owners/{owner['owner_id']}", json={"phone": "555-0199"})
    assert response.json()["phone"] == "555-0199"
    assert client.get(f"/api/owners/{owner['owner_id']}").json()["phone"] == "555-0199"


def test_missing_owner_is_404():
    assert client.get("/api/owners/999999").status_code == 404
    assert client.put("/api/owners/999999", json={}).status_code == 404
    assert client.delete("/api/owners/999999").status_code == 404


def test_add_pet_links_owner():
    owner = register_owner("Marek")
    pet = add_pet(owner["owner_id"], "Burek")

    assert pet["owner_id"] == owner["owner_id"]
    fetched = client.get(f"/api/pets/{pet['pet_id']}").json()
    assert fetched["owner"]["first_name"] == "Marek"
    assert [p["name"] for p in client.get(f"/api/owners/{owner['owner_id']}").json()["pets"]] == ["Burek"]


def test_add_pet_for_missing_owner_is_404():
    response = client.post("/api/pets", json={
        "owner_id": 999999,
        "name": "Ghost",
        "species": "cat",
        "breed": "none",
        "birth_date": "2020-01-01",
    })
    assert response.status_code == 404


def test_list_pets_by_owner():
    owner = register_owner("Ewa")
    add_pet(owner["owner_id"], "Mruczek", "cat")
    add_pet(owner["owner_id"], "Azor", "dog")

    response = client.get("/api/pets", params={"owner_id": owner["owner_id"], "species": "cat"})
    assert [p["name"] for p in response.json()] == ["Mruczek"]


def test_move_pet_to_another_owner():
    first = register_owner("Adam")
    second = register_owner("Ola")
    pet = add_pet(first["owner_id"])

    response = client.put(f"/api/pets/{pet['pet_id']}", json={"owner_id": second["owner_id"], "name": "Max"})
    assert response.json()["owner_id"] == second["owner_id"]
    assert response.json()["name"] == "Max"
    assert client.get(f"/api/owners/{first['owner_id']}").json()["pets"] == []


def test_delete_owner_deletes_pets():
    owner = register_owner("Kasia")
    pet = add_pet(owner["owner_id"])

    assert client.delete(f"/api/owners/{owner['owner_id']}").json() == {"message": "Owner deleted"}
    assert client.get(f"/api/owners/{owner['owner_id']}").status_code == 404
    assert client.get(f"/api/pets/{pet['pet_id']}").status_code == 404


def test_delete_pet():
    owner = register_owner("Tomek")
    pet = add_pet(owner["owner_id"])

    assert client.delete(f"/api/pets/{pet['pet_id']}").status_code == 200
    assert client.get(f"/api/pets/{pet['pet_id']}").status_code == 404
