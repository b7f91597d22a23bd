from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from app.schemas.recipe_schemas import (
    GenerationResult,
    PromptRecipeRequest,
    RecipePreferences,
)
from app.services.llm_service import RecipeGenerationService, get_generation_service
from app.services.prompt_builder import build_prompt_from_text, build_recipe_prompt

router = APIRouter(prefix="/api", tags=["recipes"])


def _to_response(result: GenerationResult) -> JSONResponse:
    # a recipe the model botched is still a 200; the client branches on rawText
    return JSONResponse(status_code=status.HTTP_200_OK, content=result.to_body())


# ─── 1. structured preferences ───────────────────────────────
@router.post("/generate-recipe")
async def generate_recipe(
    body: RecipePreferences,
    service: RecipeGenerationService = Depends(get_generation_service),
):
    result = await service.generate(build_recipe_prompt(body))
    return _to_response(result)


# ─── 2. free-text description ────────────────────────────────
@router.post("/generate-recipe-from-prompt")
async def generate_recipe_from_prompt(
    body: PromptRecipeRequest,
    service: RecipeGenerationService = Depends(get_generation_service),
):
    if not body.userPrompt.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Please enter a prompt to generate a recipe.")

    result = await service.generate(build_prompt_from_text(body.userPrompt))
    return _to_response(result)
