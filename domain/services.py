"""Functionality behind the routes."""

from typing import Any

from domain.errors import InvalidPayload
from domain.formatter import format_recipe
from domain.models import Category, Dish, FormattedRecipe
from domain.repository import RecipeBookRepository


def clean_name(name: Any, what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidPayload(f"{what} name is required")
    return name.strip()


def clean_dish_updates(updates: dict[str, Any]) -> dict[str, Any]:
    """Keep the editable dish fields, coerced to their stored types."""
    cleaned: dict[str, Any] = {}
    if "name" in updates:
        cleaned["name"] = clean_name(updates["name"], "Dish")
    if "description" in updates:
        cleaned["description"] = str(updates["description"] or "")
    if "favorite" in updates:
        cleaned["favorite"] = bool(updates["favorite"])
    return cleaned


def recipe_text(text: Any) -> str:
    return "" if text is None else str(text)


def formatted_recipe(text: Any) -> FormattedRecipe:
    return format_recipe(recipe_text(text))


async def list_categories(
    uid: str, *, repository: RecipeBookRepository
) -> dict[str, Any]:
    return await repository.list_categories(uid)


async def create_category(
    uid: str, name: Any, *, repository: RecipeBookRepository
) -> Category:
    return await repository.create_category(uid, clean_name(name, "Category"))


async def rename_category(
    uid: str, cat_id: str, name: Any, *, repository: RecipeBookRepository
) -> Category:
    return await repository.rename_category(uid, cat_id, clean_name(name, "Category"))


async def delete_category(
    uid: str, cat_id: str, *, repository: RecipeBookRepository
) -> None:
    await repository.delete_category(uid, cat_id)


async def list_dishes(
    uid: str, cat_id: str, *, repository: RecipeBookRepository
) -> dict[str, Any]:
    return await repository.list_dishes(uid, cat_id)


async def create_dish(
    uid: str,
    cat_id: str,
    payload: dict[str, Any],
    *,
    repository: RecipeBookRepository,
) -> Dish:
    return await repository.create_dish(
        uid,
        cat_id,
        name=clean_name(payload.get("name"), "Dish"),
        description=str(payload.get("description") or ""),
        favorite=bool(payload.get("favorite", False)),
    )


async def update_dish(
    uid: str,
    cat_id: str,
    dish_id: str,
    payload: dict[str, Any],
    *,
    repository: RecipeBookRepository,
) -> dict[str, Any]:
    updates = clean_dish_updates(payload)
    return await repository.update_dish(uid, cat_id, dish_id, updates)


async def delete_dish(
    uid: str, cat_id: str, dish_id: str, *, repository: RecipeBookRepository
) -> None:
    await repository.delete_dish(uid, cat_id, dish_id)


async def toggle_favorite(
    uid: str, cat_id: str, dish_id: str, *, repository: RecipeBookRepository
) -> bool:
    return await repository.toggle_favorite(uid, cat_id, dish_id)
