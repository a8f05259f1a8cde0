from typing import Any


class Ingredient:
    """Quantity with an optional unit and name, as scanned from recipe text.

    The quantity is kept as the digit token as written so that `display` is a
    literal span of the text it came from.
    """

    __slots__ = ("quantity", "unit", "name")

    def __init__(
        self,
        quantity: str,
        unit: str | None = None,
        name: str | None = None,
    ) -> None:
        self.quantity = quantity
        self.unit = unit
        self.name = name

    @property
    def amount(self) -> int:
        return int(self.quantity)

    @property
    def display(self) -> str:
        return " ".join(p for p in (self.quantity, self.unit, self.name) if p)

    def __repr__(self) -> str:
        return f"<Ingredient({self.display!r})>"

    def __str__(self) -> str:
        return self.display

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ingredient):
            return NotImplemented
        return (self.quantity, self.unit, self.name) == (
            other.quantity,
            other.unit,
            other.name,
        )

    def __hash__(self) -> int:
        return hash((self.quantity, self.unit, self.name))


class FormattedRecipe:
    def __init__(
        self,
        ingredients: tuple[Ingredient, ...] = (),
        steps: tuple[str, ...] = (),
    ) -> None:
        self.ingredients = tuple(ingredients)
        self.steps = tuple(steps)

    @property
    def unique_ingredients(self) -> tuple[str, ...]:
        """Ingredient display strings without repeats, first seen first."""
        return tuple(dict.fromkeys(i.display for i in self.ingredients))

    def __repr__(self) -> str:
        return (
            f"<FormattedRecipe(ingredients={len(self.ingredients)}, "
            f"steps={len(self.steps)})>"
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "ingredients": list(self.unique_ingredients),
            "steps": list(self.steps),
        }


class Dish:
    def __init__(
        self,
        *,
        id: str,
        name: str,
        description: str = "",
        favorite: bool = False,
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self.favorite = favorite

    def __repr__(self) -> str:
        return f"<Dish(id={self.id}, name={self.name})>"

    def to_record(self) -> dict[str, Any]:
        """What gets stored under the dish key."""
        return {
            "name": self.name,
            "description": self.description,
            "favorite": self.favorite,
        }

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.to_record()}


class Category:
    def __init__(self, *, id: str, name: str) -> None:
        self.id = id
        self.name = name

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"

    def to_record(self) -> dict[str, Any]:
        return {"name": self.name, "dishes": {}}

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}
