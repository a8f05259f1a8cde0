import logging
from typing import Any

from domain.models import Category, Dish
from domain.store import KeyValueStore, join_path


logger = logging.getLogger(__name__)


class MirrorPolicy:
    """Where category data lives and how its two copies are kept.

    The primary copy is per user, under `users/{uid}/categories`. The mirror
    is the shared `categories` root that older clients still read.

    Writes go to the primary and then to the mirror. The two writes are not
    atomic, so a failure in between leaves the mirror stale. Reads take the
    primary and fall back to the mirror only when the primary holds nothing.
    With `mirror=False` only the primary is touched.
    """

    def __init__(self, *, mirror: bool = True) -> None:
        self.mirror = mirror

    def primary(self, uid: str, *parts: str) -> str:
        return join_path("users", uid, "categories", *parts)

    def secondary(self, *parts: str) -> str:
        return join_path("categories", *parts)

    def write_paths(self, uid: str, *parts: str) -> list[str]:
        paths = [self.primary(uid, *parts)]
        if self.mirror:
            paths.append(self.secondary(*parts))
        return paths

    def read_paths(self, uid: str, *parts: str) -> list[str]:
        return self.write_paths(uid, *parts)


class RecipeBookRepository:
    """Categories and their dishes, per user."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        policy: MirrorPolicy | None = None,
    ) -> None:
        self.store = store
        self.policy = MirrorPolicy() if policy is None else policy

    async def _read(self, uid: str, *parts: str) -> Any:
        for i, path in enumerate(self.policy.read_paths(uid, *parts)):
            value = await self.store.get(path)
            if value is not None:
                if i:
                    logger.info("Read %s from fallback path %s", uid, path)
                return value
        return None

    async def _set(self, uid: str, *parts: str, value: Any) -> None:
        for path in self.policy.write_paths(uid, *parts):
            await self.store.set(path, value)

    async def _update(self, uid: str, *parts: str, values: dict[str, Any]) -> None:
        for path in self.policy.write_paths(uid, *parts):
            await self.store.update(path, values)

    async def _remove(self, uid: str, *parts: str) -> None:
        for path in self.policy.write_paths(uid, *parts):
            await self.store.remove(path)

    async def list_categories(self, uid: str) -> dict[str, Any]:
        categories = await self._read(uid)
        return categories or {}

    async def create_category(self, uid: str, name: str) -> Category:
        category = Category(id=self.store.push_key(), name=name)
        await self._set(uid, category.id, value=category.to_record())
        logger.info("Category created for user %s: %s", uid, category.id)
        return category

    async def rename_category(self, uid: str, cat_id: str, name: str) -> Category:
        await self._set(uid, cat_id, "name", value=name)
        logger.info("Category updated: %s", cat_id)
        return Category(id=cat_id, name=name)

    async def delete_category(self, uid: str, cat_id: str) -> None:
        await self._remove(uid, cat_id)
        logger.info("Category deleted: %s", cat_id)

    async def list_dishes(self, uid: str, cat_id: str) -> dict[str, Any]:
        dishes = await self._read(uid, cat_id, "dishes")
        return dishes or {}

    async def create_dish(
        self,
        uid: str,
        cat_id: str,
        *,
        name: str,
        description: str = "",
        favorite: bool = False,
    ) -> Dish:
        dish = Dish(
            id=self.store.push_key(),
            name=name,
            description=description,
            favorite=favorite,
        )
        await self._set(uid, cat_id, "dishes", dish.id, value=dish.to_record())
        logger.info("Dish created: %s", dish.id)
        return dish

    async def update_dish(
        self,
        uid: str,
        cat_id: str,
        dish_id: str,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        await self._update(uid, cat_id, "dishes", dish_id, values=updates)
        logger.info("Dish updated: %s", dish_id)
        return {"id": dish_id, **updates}

    async def delete_dish(self, uid: str, cat_id: str, dish_id: str) -> None:
        await self._remove(uid, cat_id, "dishes", dish_id)
        logger.info("Dish deleted: %s", dish_id)

    async def toggle_favorite(self, uid: str, cat_id: str, dish_id: str) -> bool:
        # The current value only ever comes from the primary copy.
        path = self.policy.primary(uid, cat_id, "dishes", dish_id, "favorite")
        favorite = not bool(await self.store.get(path))
        await self._set(uid, cat_id, "dishes", dish_id, "favorite", value=favorite)
        logger.info("Favorite toggled: %s %s", dish_id, favorite)
        return favorite
