# app/schemas/recipe_schemas.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# A list of strings from a JSON client, or the same list already joined
# with ", " by the browser form.
StringOrList = Union[List[str], str, None]


# ─── Requests ────────────────────────────────────────────────
class RecipePreferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ingredients: StringOrList = None
    dietaryRestrictions: StringOrList = None
    cuisinePreference: StringOrList = None
    mealType: StringOrList = None
    servingSize: Union[str, int, None] = None
    cookingTime: Union[str, int, None] = None
    difficulty: Optional[str] = None
    # sent by the web client; generation is not tied to a user
    userId: Optional[str] = None


class PromptRecipeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    userPrompt: str


class SaveRecipeRequest(BaseModel):
    recipeData: dict[str, Any]
    imageUrl: str = Field(min_length=1)


# ─── Recipe document ─────────────────────────────────────────
class NutritionalInfo(BaseModel):
    calories: Optional[str] = None
    protein: Optional[str] = None
    fat: Optional[str] = None


class Recipe(BaseModel):
    """Recipe as requested from the LLM.

    Instances coming from the parser are built with ``model_construct`` after
    the minimum-shape check, so only ``title``, ``ingredients`` and
    ``instructions`` are guaranteed. ``model_fields_set`` tells which of the
    optional fields the model actually sent; unknown keys are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    title: str
    description: Optional[str] = None
    servingSize: Optional[str] = None
    cookingTime: Optional[str] = None
    difficulty: Optional[str] = None
    dietaryRestrictions: Optional[List[str]] = None
    cuisinePreference: Optional[List[str]] = None
    mealType: Optional[str] = None
    ingredients: List[Any]
    instructions: List[Any]
    nutritionalInfo: Optional[NutritionalInfo] = None

    def to_document(self) -> dict[str, Any]:
        # exactly what the LLM sent, no defaults filled in
        return self.model_dump(exclude_unset=True, warnings=False)


# ─── Parse results ───────────────────────────────────────────
@dataclass(frozen=True)
class ParsedRecipe:
    recipe: Recipe


@dataclass(frozen=True)
class RecipeSchemaError:
    detail: str


RecipeParseResult = Union[ParsedRecipe, RecipeSchemaError]


# ─── Generation results ──────────────────────────────────────
@dataclass(frozen=True)
class GeneratedRecipe:
    recipe: Recipe
    image_url: Optional[str] = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"recipe": self.recipe.to_document()}
        if self.image_url is not None:
            body["imageUrl"] = self.image_url
        return body


@dataclass(frozen=True)
class RecipeParseFailure:
    raw_text: str
    error_details: str

    RAW_TEXT_LIMIT = 200

    def to_body(self) -> dict[str, Any]:
        preview = self.raw_text[: self.RAW_TEXT_LIMIT]
        return {
            "message": (
                "The AI did not return valid recipe JSON. Please try again or refine your prompt. "
                f"Raw text (first {self.RAW_TEXT_LIMIT} chars): {preview}..."
            ),
            "rawText": preview,
            "errorDetails": self.error_details,
        }


GenerationResult = Union[GeneratedRecipe, RecipeParseFailure]


# ─── Saved recipes ───────────────────────────────────────────
class SavedRecipeRecord(BaseModel):
    """A row of the saved recipes table, serialized camelCase for the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    userId: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    recipe: dict[str, Any]
    imageUrl: str = Field(validation_alias=AliasChoices("image_url", "imageUrl"))
    savedAt: datetime = Field(validation_alias=AliasChoices("saved_at", "savedAt"))


class SaveRecipeResponse(BaseModel):
    message: str
    savedRecipeId: str


class HistoryResponse(BaseModel):
    recipes: List[SavedRecipeRecord]
