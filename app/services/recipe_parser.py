# app/services/recipe_parser.py
import json
import re

from app.schemas.recipe_schemas import (
    ParsedRecipe,
    Recipe,
    RecipeParseResult,
    RecipeSchemaError,
)

# Strip ```json fences defensively, JSON mode still leaks them now and then
_fence = re.compile(r"^```(\w+)?\s*\n?(.*?)\n?```$", re.S)

MISSING_FIELDS_DETAIL = (
    "Parsed JSON is missing essential recipe fields (title, ingredients[], or instructions[])."
)


def strip_code_fence(raw: str) -> str:
    text = raw.strip()
    m = _fence.match(text)
    if m:
        text = m.group(2).strip()
    return text


def has_minimum_shape(candidate: object) -> bool:
    """Truthy title plus list-valued ingredients and instructions.

    Empty lists pass; nothing else about the document is checked.
    """
    return (
        isinstance(candidate, dict)
        and bool(candidate.get("title"))
        and isinstance(candidate.get("ingredients"), list)
        and isinstance(candidate.get("instructions"), list)
    )


def parse_recipe_response(raw_text: str) -> RecipeParseResult:
    try:
        parsed = json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as e:
        return RecipeSchemaError(detail=f"Invalid JSON: {e}")

    if not has_minimum_shape(parsed):
        return RecipeSchemaError(detail=MISSING_FIELDS_DETAIL)

    return ParsedRecipe(recipe=Recipe.model_construct(_fields_set=set(parsed), **parsed))
