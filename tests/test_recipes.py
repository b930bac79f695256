from fastapi.testclient import TestClient

from recipe_hub import models

API = "/api/v1"


def test_create_recipe_defaults_to_draft(client: TestClient, author_headers, make_recipe, author):
    recipe = make_recipe(author_headers)
    assert recipe["status"] == "draft"
    assert recipe["author"]["id"] == str(author.id)
    assert recipe["category"]["slug"] == "italian-cuisine"
    assert recipe["totalTimeMinutes"] == 25
    assert recipe["viewsCount"] == 0
    assert recipe["likesCount"] == 0


def test_ingredients_and_steps_keep_their_order(client: TestClient, author_headers, make_recipe):
    recipe = make_recipe(author_headers)
    assert [i["ingredientName"] for i in recipe["ingredients"]] == ["Spaghetti", "Eggs", "Pecorino"]
    assert [i["position"] for i in recipe["ingredients"]] == [1, 2, 3]
    assert [s["stepNumber"] for s in recipe["steps"]] == [1, 2, 3]
    assert [s["title"] for s in recipe["steps"]] == ["Boil", "Mix", "Combine"]

    fetched = client.get(f"{API}/recipes/{recipe['id']}", headers=author_headers).json()["data"]
    assert [i["ingredientName"] for i in fetched["ingredients"]] == ["Spaghetti", "Eggs", "Pecorino"]
    assert [s["stepNumber"] for s in fetched["steps"]] == [1, 2, 3]


def test_explicit_step_numbers_are_respected(client: TestClient, author_headers, make_recipe):
    steps = [
        {"stepNumber": 2, "title": "Second", "instructions": "Then this."},
        {"stepNumber": 1, "title": "First", "instructions": "Do this first."},
    ]
    recipe = make_recipe(author_headers, steps=steps)
    assert [s["title"] for s in recipe["steps"]] == ["First", "Second"]


def test_named_ingredients_are_created_once(client: TestClient, author_headers, make_recipe, db):
    make_recipe(author_headers)
    make_recipe(author_headers, title="Another Carbonara")
    names = [i.name for i in db.query(models.Ingredient).order_by(models.Ingredient.name)]
    assert names == ["Eggs", "Pecorino", "Spaghetti"]


def test_create_with_existing_ingredient_id(client: TestClient, author_headers, make_recipe, db):
    basil = models.Ingredient(name="Basil", category=models.IngredientCategory.HERB)
    db.add(basil)
    db.commit()
    recipe = make_recipe(author_headers, ingredients=[
        {"ingredientId": str(basil.id), "quantity": 5, "unit": "leaves", "isOptional": True},
    ])
    assert recipe["ingredients"][0]["ingredientName"] == "Basil"
    assert recipe["ingredients"][0]["isOptional"] is True


def test_recipe_without_ingredients_is_rejected(client: TestClient, author_headers, recipe_payload):
    response = client.post(f"{API}/recipes/", json=recipe_payload(ingredients=[]), headers=author_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_FAILED"
    assert "ingredients" in [e["field"] for e in body["errors"]]


def test_validation_lists_every_failing_field(client: TestClient, author_headers, recipe_payload):
    payload = recipe_payload(
        title="!!",
        servings=0,
        cookTimeMinutes=5000,
        imageUrl="https://example.com/pic.gif",
        tags=["ok", "not_ok"],
        ingredients=[{"ingredientName": "Salt", "quantity": 0, "unit": "pinch"}],
    )
    response = client.post(f"{API}/recipes/", json=payload, headers=author_headers)
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"title", "servings", "cookTimeMinutes", "imageUrl", "tags", "ingredients.0.quantity"} <= fields


def test_unknown_category_is_a_field_error(client: TestClient, author_headers, recipe_payload):
    payload = recipe_payload(categoryId="00000000-0000-0000-0000-000000000000")
    response = client.post(f"{API}/recipes/", json=payload, headers=author_headers)
    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "categoryId", "message": "Category not found"}]


def test_wrong_type_is_400_not_422(client: TestClient, author_headers, recipe_payload):
    response = client.post(f"{API}/recipes/", json=recipe_payload(servings="many"), headers=author_headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "servings"


def test_wrong_types_are_reported_with_rule_errors(client: TestClient, author_headers, recipe_payload):
    payload = recipe_payload(title="x", servings="many", ingredients=[])
    response = client.post(f"{API}/recipes/", json=payload, headers=author_headers)
    assert response.status_code == 400
    assert {e["field"] for e in response.json()["errors"]} == {"title", "servings", "ingredients"}


def test_fractional_cook_time_gets_bounds_message(client: TestClient, author_headers, recipe_payload):
    response = client.post(f"{API}/recipes/", json=recipe_payload(cookTimeMinutes=30.5), headers=author_headers)
    assert response.status_code == 400
    assert response.json()["errors"] == [
        {"field": "cookTimeMinutes", "message": "Cooking time must be between 1 and 960 minutes (16 hours max)"}
    ]


def test_whole_number_floats_are_stored_as_integers(client: TestClient, author_headers, make_recipe):
    recipe = make_recipe(author_headers, servings=4.0, prepTimeMinutes=10.0)
    assert recipe["servings"] == 4
    assert recipe["prepTimeMinutes"] == 10


def test_nested_wrong_types_are_field_errors(client: TestClient, author_headers, recipe_payload):
    payload = recipe_payload(
        title=42,
        ingredients=[{"ingredientName": "Salt", "quantity": "a pinch", "unit": "pinch"}],
        steps=[{"title": "Season", "instructions": "Salt it.", "timeMinutes": "soon"}],
        nutritionalInfo={"protein": "lots"},
    )
    response = client.post(f"{API}/recipes/", json=payload, headers=author_headers)
    assert response.status_code == 400
    assert {e["field"] for e in response.json()["errors"]} == {
        "title", "ingredients.0.quantity", "steps.0.timeMinutes", "nutritionalInfo.protein",
    }


def test_create_requires_auth(client: TestClient, recipe_payload):
    assert client.post(f"{API}/recipes/", json=recipe_payload()).status_code == 401


def test_create_published_directly(client: TestClient, author_headers, make_recipe):
    recipe = make_recipe(author_headers, status="published")
    assert recipe["status"] == "published"


def test_cannot_create_archived(client: TestClient, author_headers, recipe_payload):
    response = client.post(f"{API}/recipes/", json=recipe_payload(status="archived"), headers=author_headers)
    assert response.status_code == 400


class TestVisibility:
    def test_draft_hidden_from_other_users(self, client, author_headers, other_headers, make_recipe):
        recipe = make_recipe(author_headers)
        assert client.get(f"{API}/recipes/{recipe['id']}", headers=other_headers).status_code == 403
        assert client.get(f"{API}/recipes/{recipe['id']}").status_code == 403

    def test_admin_can_read_draft(self, client, author_headers, admin_headers, make_recipe):
        recipe = make_recipe(author_headers)
        assert client.get(f"{API}/recipes/{recipe['id']}", headers=admin_headers).status_code == 200

    def test_published_is_public_and_counts_views(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers, status="published")
        first = client.get(f"{API}/recipes/{recipe['id']}")
        assert first.status_code == 200
        assert first.json()["data"]["viewsCount"] == 1
        second = client.get(f"{API}/recipes/{recipe['id']}")
        assert second.json()["data"]["viewsCount"] == 2

    def test_draft_reads_do_not_count(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.get(f"{API}/recipes/{recipe['id']}", headers=author_headers)
        assert response.json()["data"]["viewsCount"] == 0

    def test_missing_recipe_is_404(self, client):
        response = client.get(f"{API}/recipes/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestListing:
    def test_public_list_shows_only_published(self, client, author_headers, make_recipe):
        make_recipe(author_headers, title="Draft One")
        make_recipe(author_headers, title="Public One", status="published")
        response = client.get(f"{API}/recipes/")
        assert response.status_code == 200
        page = response.json()["data"]
        assert [r["title"] for r in page["data"]] == ["Public One"]
        assert page["total"] == 1
        assert response.headers["X-Total-Count"] == "1"

    def test_admin_sees_all_and_filters_by_status(self, client, author_headers, admin_headers, make_recipe):
        make_recipe(author_headers, title="Draft One")
        make_recipe(author_headers, title="Public One", status="published")
        assert client.get(f"{API}/recipes/", headers=admin_headers).json()["data"]["total"] == 2
        drafts = client.get(f"{API}/recipes/", params={"status": "draft"}, headers=admin_headers).json()["data"]
        assert [r["title"] for r in drafts["data"]] == ["Draft One"]

    def test_my_recipes_include_drafts(self, client, author_headers, other_headers, make_recipe):
        make_recipe(author_headers, title="Draft One")
        make_recipe(author_headers, title="Public One", status="published")
        make_recipe(other_headers, title="Not Mine", status="published")
        page = client.get(f"{API}/recipes/my/recipes", headers=author_headers).json()["data"]
        assert {r["title"] for r in page["data"]} == {"Draft One", "Public One"}

    def test_author_listing(self, client, author, author_headers, make_recipe):
        make_recipe(author_headers, title="Draft One")
        make_recipe(author_headers, title="Public One", status="published")
        page = client.get(f"{API}/recipes/author/{author.id}").json()["data"]
        assert [r["title"] for r in page["data"]] == ["Public One"]

    def test_author_listing_ignores_author_query(self, client, author, other, author_headers, make_recipe):
        make_recipe(author_headers, title="Public One", status="published")
        response = client.get(f"{API}/recipes/author/{author.id}", params={"authorId": str(other.id)})
        assert response.status_code == 200
        assert [r["title"] for r in response.json()["data"]["data"]] == ["Public One"]

    def test_author_listing_unknown_user(self, client):
        response = client.get(f"{API}/recipes/author/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    def test_pagination_metadata(self, client, author_headers, make_recipe):
        for n in range(3):
            make_recipe(author_headers, title=f"Recipe {n}", status="published")
        page = client.get(f"{API}/recipes/", params={"page": 2, "limit": 2, "sort": "title"}).json()["data"]
        assert [r["title"] for r in page["data"]] == ["Recipe 2"]
        assert page["totalPages"] == 2
        assert page["hasPrev"] is True
        assert page["hasNext"] is False

    def test_filters(self, client, author_headers, make_recipe):
        make_recipe(author_headers, title="Quick Salad", status="published", prepTimeMinutes=5,
                    difficulty="easy", tags=["vegan"], servings=2)
        make_recipe(author_headers, title="Slow Roast", status="published", prepTimeMinutes=60,
                    difficulty="hard", tags=["meat"], servings=8)

        def titles(**params):
            return [r["title"] for r in client.get(f"{API}/recipes/", params=params).json()["data"]["data"]]

        assert titles(maxPrepTime=10) == ["Quick Salad"]
        assert titles(difficulty="hard") == ["Slow Roast"]
        assert titles(tags="vegan") == ["Quick Salad"]
        assert titles(search="roast") == ["Slow Roast"]
        assert titles(minServings=4) == ["Slow Roast"]
        assert sorted(titles(tags="vegan,meat")) == ["Quick Salad", "Slow Roast"]


class TestUpdate:
    def test_partial_update(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.patch(f"{API}/recipes/{recipe['id']}", json={"servings": 6}, headers=author_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["servings"] == 6
        assert data["title"] == recipe["title"]
        assert len(data["steps"]) == 3

    def test_replace_ingredients(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        new_ingredients = [{"ingredientName": "Rice", "quantity": 1, "unit": "cup"}]
        response = client.patch(f"{API}/recipes/{recipe['id']}", json={"ingredients": new_ingredients},
                                headers=author_headers)
        assert response.status_code == 200
        assert [i["ingredientName"] for i in response.json()["data"]["ingredients"]] == ["Rice"]

    def test_update_cannot_empty_steps(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.patch(f"{API}/recipes/{recipe['id']}", json={"steps": []}, headers=author_headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "steps"

    def test_invalid_update_changes_nothing(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.patch(f"{API}/recipes/{recipe['id']}", json={"title": "Renamed", "servings": 500},
                                headers=author_headers)
        assert response.status_code == 400
        fetched = client.get(f"{API}/recipes/{recipe['id']}", headers=author_headers).json()["data"]
        assert fetched["title"] == recipe["title"]

    def test_update_reports_type_and_rule_errors_together(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.patch(f"{API}/recipes/{recipe['id']}", json={"servings": "six", "title": "!"},
                                headers=author_headers)
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"servings", "title"}


class TestSteps:
    def test_remove_step_renumbers(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        response = client.delete(f"{API}/recipes/{recipe['id']}/steps/2", headers=author_headers)
        assert response.status_code == 200
        steps = response.json()["data"]["steps"]
        assert [s["stepNumber"] for s in steps] == [1, 2]
        assert [s["title"] for s in steps] == ["Boil", "Combine"]

    def test_remove_unknown_step(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers)
        assert client.delete(f"{API}/recipes/{recipe['id']}/steps/9", headers=author_headers).status_code == 404

    def test_cannot_remove_last_step(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers, steps=[{"title": "Only", "instructions": "The only step."}])
        response = client.delete(f"{API}/recipes/{recipe['id']}/steps/1", headers=author_headers)
        assert response.status_code == 400


class TestLikes:
    def test_like_and_unlike(self, client, author_headers, other_headers, make_recipe):
        recipe = make_recipe(author_headers, status="published")
        liked = client.post(f"{API}/recipes/{recipe['id']}/like", headers=other_headers)
        assert liked.json()["data"]["likesCount"] == 1
        unliked = client.delete(f"{API}/recipes/{recipe['id']}/like", headers=other_headers)
        assert unliked.json()["data"]["likesCount"] == 0

    def test_unlike_floors_at_zero(self, client, author_headers, other_headers, make_recipe):
        recipe = make_recipe(author_headers, status="published")
        response = client.delete(f"{API}/recipes/{recipe['id']}/like", headers=other_headers)
        assert response.json()["data"]["likesCount"] == 0

    def test_like_requires_auth(self, client, author_headers, make_recipe):
        recipe = make_recipe(author_headers, status="published")
        assert client.post(f"{API}/recipes/{recipe['id']}/like").status_code == 401


def test_recipe_stats_admin_only(client: TestClient, author_headers, admin_headers, make_recipe):
    make_recipe(author_headers, prepTimeMinutes=10, difficulty="easy")
    make_recipe(author_headers, prepTimeMinutes=20, difficulty="hard", status="published")
    assert client.get(f"{API}/recipes/admin/stats", headers=author_headers).status_code == 403

    stats = client.get(f"{API}/recipes/admin/stats", headers=admin_headers).json()["data"]
    assert stats["totalRecipes"] == 2
    assert stats["publishedRecipes"] == 1
    assert stats["draftRecipes"] == 1
    assert stats["averagePrepTime"] == 15.0
    assert stats["byDifficulty"] == {"easy": 1, "medium": 0, "hard": 1}
