from jinja2 import Environment, FileSystemLoader, select_autoescape
import pytest

from app.config import Config
from app.html.formatted_recipe import FormattedRecipeHtml
from domain.formatter import format_recipe


EMPTY = "<h3>Інгредієнти</h3><ul></ul><h3>Приготування</h3><ol></ol>"


@pytest.fixture
def environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(Config().html_dir),
        autoescape=select_autoescape(),
    )


def render(text: str, environment: Environment) -> str:
    return FormattedRecipeHtml(format_recipe(text), environment=environment).render()


def test_render_empty(environment: Environment) -> None:
    assert render("", environment) == EMPTY


def test_render_no_structure(environment: Environment) -> None:
    assert render("ок", environment) == EMPTY


def test_render_sections_in_order(environment: Environment) -> None:
    got = render("200 г муки змішати з цукром", environment)
    assert got == (
        "<h3>Інгредієнти</h3><ul><li>200 г муки</li></ul>"
        "<h3>Приготування</h3><ol><li>Змішати з цукром.</li></ol>"
    )


def test_render_deduplicates_ingredients(environment: Environment) -> None:
    got = render("100 г цукру варити 100 г цукру", environment)
    assert got.count("<li>100 г цукру</li>") == 1
    assert "<ol><li>Варити.</li></ol>" in got


def test_render_escapes_markup(environment: Environment) -> None:
    got = render("варити <b>суп</b>", environment)
    assert "<li>Варити &lt;b&gt;суп&lt;/b&gt;.</li>" in got
