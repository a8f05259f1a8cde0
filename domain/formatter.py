"""Turn free recipe text into an ingredient list and a list of steps.

A heuristic lexical segmenter, not a parser. Four stages:

1. `clean_text` collapses whitespace, drops the "опис" marker and spaces out
   quantities glued to the gram unit ("200гмуки" -> "200 г муки").
2. `extract_ingredients` scans tokens left to right. A digit token starts an
   ingredient, a unit word may follow, and after a unit a plain word is taken
   as the name.
3. `extract_steps` removes the ingredients from the text and cuts what is left
   in front of every cooking verb.
4. Rendering lives in `app.html.formatted_recipe`.

Every function here is total over strings.
"""

import logging
import re

from domain.models import FormattedRecipe, Ingredient


logger = logging.getLogger(__name__)


LETTERS = "а-яіїєґ'’ʼ"

# Matched as prefixes, so inflected forms count too ("ложки", "хвилин").
UNIT_PREFIXES: tuple[str, ...] = (
    "г",
    "кг",
    "мл",
    "л",
    "шт",
    "хв",
    "яйц",
    "ложк",
    "склян",
    "чайна",
    "столова",
    "штук",
    "хвилин",
)

# A step starts right before any of these.
VERB_STEMS: tuple[str, ...] = (
    "зміша",  # mix
    "виклас",  # lay out
    "піджар",  # fry
    "вар",  # boil
    "пекти",  # bake
    "смаж",  # fry
    "ріж",  # cut
    "чист",  # clean
    "дода",  # add
    "нали",  # pour
    "посип",  # sprinkle
    "зби",  # whisk
    "заміс",  # knead
    "налип",  # pour in
    "засун",  # push in
    "почек",  # wait
)

STEP_ENDINGS = ".!?"
MIN_STEP_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")
_MARKER = re.compile(r"\bопис\b", re.IGNORECASE)
_GLUED_GRAMS = re.compile(rf"(\d+)\s*г(?!рам)\s*([{LETTERS}]+)", re.IGNORECASE)
_QUANTITY = re.compile(r"[0-9]+")
_NAME = re.compile(rf"[{LETTERS}]+", re.IGNORECASE)
_STEP_BOUNDARY = re.compile(
    "(?=" + "|".join(re.escape(v) for v in VERB_STEMS) + ")", re.IGNORECASE
)


def _squash(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _clean_once(text: str) -> str:
    text = _squash(text)
    text = _MARKER.sub(" ", text)
    text = _GLUED_GRAMS.sub(r"\1 г \2", text)
    return _squash(text)


def clean_text(text: str) -> str:
    """Stage 1. Repeats until nothing changes, so cleaning twice is a no-op."""
    cleaned = _clean_once(text)
    while cleaned != text:
        text, cleaned = cleaned, _clean_once(cleaned)
    return cleaned


def is_unit(word: str) -> bool:
    return word.lower().startswith(UNIT_PREFIXES)


def is_name(word: str) -> bool:
    return _NAME.fullmatch(word) is not None


def extract_ingredients(cleaned: str) -> list[Ingredient]:
    """Stage 2. Greedy single pass, at most three tokens per ingredient."""
    words = cleaned.split(" ")
    ingredients: list[Ingredient] = []
    i = 0

    while i < len(words):
        if not _QUANTITY.fullmatch(words[i]):
            i += 1
            continue

        quantity, unit, name = words[i], None, None
        i += 1

        if i < len(words) and is_unit(words[i]):
            unit = words[i]
            i += 1

            if i < len(words) and is_name(words[i]):
                name = words[i]
                i += 1

        ingredients.append(Ingredient(quantity, unit, name))

    return ingredients


def residual_text(cleaned: str, ingredients: list[Ingredient]) -> str:
    """Cleaned text minus the first occurrence of each ingredient, in order."""
    for ingredient in ingredients:
        cleaned = cleaned.replace(ingredient.display, "", 1)
    return _squash(cleaned)


def normalize_step(segment: str) -> str | None:
    step = segment.strip()
    if len(step) < MIN_STEP_LENGTH:
        return None
    if step[-1] not in STEP_ENDINGS:
        step += "."
    return step[0].upper() + step[1:]


def extract_steps(cleaned: str, ingredients: list[Ingredient]) -> list[str]:
    """Stage 3."""
    residual = residual_text(cleaned, ingredients)
    if not residual:
        return []

    steps: list[str] = []
    for segment in _STEP_BOUNDARY.split(residual):
        step = normalize_step(segment)
        if step is not None:
            steps.append(step)
    return steps


def format_recipe(text: str) -> FormattedRecipe:
    cleaned = clean_text(text)
    ingredients = extract_ingredients(cleaned)
    steps = extract_steps(cleaned, ingredients)
    logger.debug(
        "Formatted recipe: %d ingredients, %d steps", len(ingredients), len(steps)
    )
    return FormattedRecipe(ingredients=tuple(ingredients), steps=tuple(steps))
