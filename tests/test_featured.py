import pytest

API = "/api/v1"


@pytest.fixture
def toggle(client, admin_headers):
    def _toggle(recipe_id, headers=admin_headers):
        return client.patch(f"{API}/recipes/{recipe_id}/toggle-featured", headers=headers)
    return _toggle


def test_admin_toggles_featured(author_headers, make_recipe, toggle):
    recipe = make_recipe(author_headers, status="published")
    response = toggle(recipe["id"])
    assert response.status_code == 200
    assert response.json()["data"]["isFeatured"] is True
    assert response.json()["message"] == "Recipe featured"
    assert toggle(recipe["id"]).json()["data"]["isFeatured"] is False


def test_author_cannot_feature(author_headers, make_recipe, toggle):
    recipe = make_recipe(author_headers, status="published")
    assert toggle(recipe["id"], author_headers).status_code == 403


def test_featured_lists_published_by_likes(client, author_headers, other_headers, make_recipe, toggle):
    quiet = make_recipe(author_headers, title="Quiet One", status="published")
    popular = make_recipe(author_headers, title="Popular One", status="published")
    draft = make_recipe(author_headers, title="Hidden Draft")
    make_recipe(author_headers, title="Not Featured", status="published")
    for recipe in (quiet, popular, draft):
        toggle(recipe["id"])
    client.post(f"{API}/recipes/{popular['id']}/like", headers=other_headers)

    response = client.get(f"{API}/recipes/featured")
    assert response.status_code == 200
    assert [r["title"] for r in response.json()["data"]] == ["Popular One", "Quiet One"]

    limited = client.get(f"{API}/recipes/featured", params={"limit": 1}).json()["data"]
    assert [r["title"] for r in limited] == ["Popular One"]


def test_is_featured_filter(client, author_headers, make_recipe, toggle):
    featured = make_recipe(author_headers, title="Star Dish", status="published")
    make_recipe(author_headers, title="Plain Dish", status="published")
    toggle(featured["id"])

    only = client.get(f"{API}/recipes/", params={"isFeatured": "true"}).json()["data"]["data"]
    assert [r["title"] for r in only] == ["Star Dish"]
    rest = client.get(f"{API}/recipes/", params={"isFeatured": "false"}).json()["data"]["data"]
    assert [r["title"] for r in rest] == ["Plain Dish"]


def test_stats_count_featured(client, author_headers, admin_headers, make_recipe, toggle):
    toggle(make_recipe(author_headers, status="published")["id"])
    stats = client.get(f"{API}/recipes/admin/stats", headers=admin_headers).json()["data"]
    assert stats["featuredRecipes"] == 1
