import pytest

from domain import services
from domain.errors import InvalidPayload
from domain.repository import RecipeBookRepository
from domain.store import KeyValueStore


@pytest.mark.parametrize("name", (None, "", "   ", 42, ["Супи"]))
def test_clean_name_rejects(name: object) -> None:
    with pytest.raises(InvalidPayload, match="Category name is required"):
        services.clean_name(name, "Category")


def test_clean_name_strips() -> None:
    assert services.clean_name("  Супи ", "Category") == "Супи"


@pytest.mark.parametrize(
    "given,expected",
    (
        ({"id": "x", "favorite": 1}, {"favorite": True}),
        ({"description": None, "color": "red"}, {"description": ""}),
        ({"name": " Борщ "}, {"name": "Борщ"}),
        ({}, {}),
    ),
)
def test_clean_dish_updates(given: dict, expected: dict) -> None:
    assert services.clean_dish_updates(given) == expected


def test_clean_dish_updates_blank_name() -> None:
    with pytest.raises(InvalidPayload, match="Dish name is required"):
        services.clean_dish_updates({"name": ""})


@pytest.mark.parametrize("text", (None, "", 123))
def test_formatted_recipe_accepts_anything(text: object) -> None:
    recipe = services.formatted_recipe(text)
    assert recipe.steps == ()


@pytest.mark.asyncio
async def test_create_dish_coerces_payload(store: KeyValueStore) -> None:
    repo = RecipeBookRepository(store)
    dish = await services.create_dish(
        "u1",
        "c1",
        {"name": " Борщ ", "description": None, "favorite": "yes"},
        repository=repo,
    )
    assert dish.to_dict() == {
        "id": dish.id,
        "name": "Борщ",
        "description": "",
        "favorite": True,
    }


@pytest.mark.asyncio
async def test_create_category_rejects_blank_name(store: KeyValueStore) -> None:
    repo = RecipeBookRepository(store)
    with pytest.raises(InvalidPayload):
        await services.create_category("u1", " ", repository=repo)
    assert await repo.list_categories("u1") == {}
