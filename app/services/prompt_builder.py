"""Prompt text sent to the LLM.

Both entry points are pure: same input, same string. Every preference slot is
always filled, falling back to a default word when the user left it blank.
"""
from __future__ import annotations

from typing import Sequence, Union

from app.schemas.recipe_schemas import RecipePreferences

SYSTEM_INSTRUCTION = (
    "You are a helpful culinary assistant that generates recipes in a precise JSON format."
)

DEFAULT_INGREDIENTS = "Any available ingredients"
DEFAULT_DIETARY = "None"
DEFAULT_CUISINE = "Any"
DEFAULT_MEAL_TYPE = "Any"
DEFAULT_SERVING_SIZE = "Not specified"
DEFAULT_COOKING_TIME = "Not specified"
DEFAULT_DIFFICULTY = "Any"

RECIPE_JSON_SCHEMA = """{
  "title": "[Recipe Title]",
  "description": "[Brief, enticing description]",
  "servingSize": "[e.g., 2, 4-6 people]",
  "cookingTime": "[e.g., 30 minutes, 1 hour]",
  "difficulty": "[Easy/Medium/Hard]",
  "dietaryRestrictions": ["e.g., Vegetarian", "Gluten-Free"],
  "cuisinePreference": ["e.g., Italian", "Mexican"],
  "mealType": "[e.g., Dinner, Breakfast]",
  "ingredients": [
    "Quantity Unit Ingredient (Preparation)",
    "..."
  ],
  "instructions": [
    "Step 1: ...",
    "Step 2: ...",
    "..."
  ],
  "nutritionalInfo": {
    "calories": "[e.g., 450 kcal per serving]",
    "protein": "[e.g., 25g per serving]",
    "fat": "[e.g., 15g per serving]"
  }
}"""

_PREAMBLE = (
    "Generate a detailed and creative recipe in JSON format based on the following {source}. "
    "Ensure the output is *only* the JSON object, ready for direct parsing. "
    "Do not include any markdown backticks or extra text outside the JSON. "
    "The JSON should have the following structure and fields, including a section for nutritional "
    "information (calories, protein, fat) based on common understanding of ingredients "
    "(use approximate common values if specific values aren't calculable by a general model). "
    'Use "N/A" if info is not available or estimable. '
    "**You must always include approximate values for calories, protein, and fat per serving "
    "- these fields are mandatory and cannot be omitted under any condition.**:"
)

_CLOSING = "Strictly output only the JSON object."


def _as_text(value: Union[Sequence[str], str, int, None], default: str) -> str:
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None and str(v).strip()]
        return ", ".join(items) if items else default
    text = str(value).strip()
    return text or default


def build_recipe_prompt(preferences: RecipePreferences) -> str:
    p = preferences
    return f"""{_PREAMBLE.format(source="criteria")}

{RECIPE_JSON_SCHEMA}

Here are the user's preferences:
Ingredients: {_as_text(p.ingredients, DEFAULT_INGREDIENTS)}
Dietary Restrictions: {_as_text(p.dietaryRestrictions, DEFAULT_DIETARY)}
Cuisine Preference: {_as_text(p.cuisinePreference, DEFAULT_CUISINE)}
Meal Type: {_as_text(p.mealType, DEFAULT_MEAL_TYPE)}
Serving Size: {_as_text(p.servingSize, DEFAULT_SERVING_SIZE)}
Cooking Time: {_as_text(p.cookingTime, DEFAULT_COOKING_TIME)}
Difficulty: {_as_text(p.difficulty, DEFAULT_DIFFICULTY)}

{_CLOSING}"""


def build_prompt_from_text(user_prompt: str) -> str:
    """Free-text mode: the user's own description replaces the preference list."""
    return f"""{_PREAMBLE.format(source="request")}

{RECIPE_JSON_SCHEMA}

Here is what the user asked for:
"{user_prompt.strip()}"

Infer ingredients, dietary restrictions, cuisine, meal type, serving size, cooking time and difficulty from the request. Where the request says nothing, choose sensible values.

{_CLOSING}"""
