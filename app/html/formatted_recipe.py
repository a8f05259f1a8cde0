from jinja2 import Environment
from markupsafe import Markup

from domain.models import FormattedRecipe


INGREDIENTS_TITLE = "Інгредієнти"
STEPS_TITLE = "Приготування"


class FormattedRecipeHtml:
    """Two sections, ingredients then steps. Empty lists still get a container."""

    def __init__(
        self,
        recipe: FormattedRecipe,
        *,
        environment: Environment,
        template_name: str = "formatted-recipe.html",
    ) -> None:
        self.recipe = recipe
        self.env = environment
        self.name = template_name

    @property
    def ingredients_title(self) -> str:
        return INGREDIENTS_TITLE

    @property
    def steps_title(self) -> str:
        return STEPS_TITLE

    @property
    def ingredients(self) -> tuple[str, ...]:
        return self.recipe.unique_ingredients

    @property
    def steps(self) -> tuple[str, ...]:
        return self.recipe.steps

    def render(self) -> str:
        return Markup(self.env.get_template(self.name).render(recipe=self))
