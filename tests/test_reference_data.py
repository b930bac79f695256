from fastapi.testclient import TestClient

from recipe_hub import models

API = "/api/v1"


class TestCategories:
    def test_admin_creates_category_with_slug(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/categories/", headers=admin_headers, json={
            "name": "Quick & Easy Meals",
            "description": "Dinner in 20 minutes",
            "icon": "⏱",
            "sortOrder": 2,
        })
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["slug"] == "quick-easy-meals"

        by_slug = client.get(f"{API}/categories/slug/quick-easy-meals")
        assert by_slug.status_code == 200
        assert by_slug.json()["data"]["id"] == data["id"]

    def test_duplicate_name_conflicts(self, client: TestClient, admin_headers, category):
        response = client.post(f"{API}/categories/", headers=admin_headers,
                               json={"name": "italian cuisine", "description": "Again"})
        assert response.status_code == 409

    def test_non_admin_cannot_create(self, client: TestClient, author_headers):
        response = client.post(f"{API}/categories/", headers=author_headers,
                               json={"name": "Soups", "description": "Warm"})
        assert response.status_code == 403

    def test_public_listing(self, client: TestClient, category):
        response = client.get(f"{API}/categories/")
        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["Italian Cuisine"]

    def test_rename_updates_slug(self, client: TestClient, admin_headers, category):
        response = client.patch(f"{API}/categories/{category.id}", headers=admin_headers, json={"name": "Roman Food"})
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "roman-food"

    def test_delete_in_use_conflicts(self, client: TestClient, admin_headers, author_headers, category, make_recipe):
        make_recipe(author_headers)
        assert client.delete(f"{API}/categories/{category.id}", headers=admin_headers).status_code == 409

    def test_delete_unused(self, client: TestClient, admin_headers, category):
        assert client.delete(f"{API}/categories/{category.id}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/categories/{category.id}").status_code == 404

    def test_unknown_slug(self, client: TestClient):
        assert client.get(f"{API}/categories/slug/nope").status_code == 404


class TestIngredients:
    def test_admin_creates_ingredient(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/ingredients/", headers=admin_headers, json={
            "name": "Garlic",
            "category": "vegetable",
            "defaultUnit": "cloves",
            "caloriesPerUnit": 4.5,
        })
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["category"] == "vegetable"
        assert data["defaultUnit"] == "cloves"

    def test_invalid_ingredient_name(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/ingredients/", headers=admin_headers, json={"name": "Garlic?!"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "name"

    def test_infinite_calories_rejected(self, client: TestClient, admin_headers):
        response = client.post(
            f"{API}/ingredients/",
            headers={**admin_headers, "Content-Type": "application/json"},
            content='{"name": "Butter", "caloriesPerUnit": Infinity}',
        )
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["caloriesPerUnit"]

    def test_name_of_the_wrong_type(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/ingredients/", headers=admin_headers, json={"name": 7, "caloriesPerUnit": -1})
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"name", "caloriesPerUnit"}

    def test_duplicate_conflicts_case_insensitive(self, client: TestClient, admin_headers):
        client.post(f"{API}/ingredients/", headers=admin_headers, json={"name": "Garlic"})
        response = client.post(f"{API}/ingredients/", headers=admin_headers, json={"name": "GARLIC"})
        assert response.status_code == 409

    def test_search_and_category_filter(self, client: TestClient, db):
        db.add_all([
            models.Ingredient(name="Basil", category=models.IngredientCategory.HERB),
            models.Ingredient(name="Basmati Rice", category=models.IngredientCategory.GRAIN),
            models.Ingredient(name="Thyme", category=models.IngredientCategory.HERB),
        ])
        db.commit()
        page = client.get(f"{API}/ingredients/", params={"search": "bas"}).json()["data"]
        assert [i["name"] for i in page["data"]] == ["Basil", "Basmati Rice"]
        page = client.get(f"{API}/ingredients/", params={"category": "herb"}).json()["data"]
        assert [i["name"] for i in page["data"]] == ["Basil", "Thyme"]

    def test_delete_in_use_conflicts(self, client: TestClient, admin_headers, author_headers, make_recipe, db):
        make_recipe(author_headers)
        eggs = db.query(models.Ingredient).filter(models.Ingredient.name == "Eggs").one()
        assert client.delete(f"{API}/ingredients/{eggs.id}", headers=admin_headers).status_code == 409

    def test_update_ingredient(self, client: TestClient, admin_headers, db):
        salt = models.Ingredient(name="Salt")
        db.add(salt)
        db.commit()
        response = client.patch(f"{API}/ingredients/{salt.id}", headers=admin_headers,
                                json={"category": "spice", "allergenInfo": "none"})
        assert response.status_code == 200
        assert response.json()["data"]["category"] == "spice"

    def test_non_admin_cannot_delete(self, client: TestClient, author_headers, db):
        salt = models.Ingredient(name="Salt")
        db.add(salt)
        db.commit()
        assert client.delete(f"{API}/ingredients/{salt.id}", headers=author_headers).status_code == 403
