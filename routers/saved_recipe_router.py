# routers/saved_recipe_router.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.schemas.recipe_schemas import HistoryResponse, SaveRecipeRequest, SaveRecipeResponse
from app.services.recipe_store import SavedRecipeStore, get_recipe_store
from auth.dependencies import CurrentSupabaseUser, get_current_supabase_user
from core.config import ConfigurationError
from core.logger import get_logger

logger = get_logger("saved_recipes")

router = APIRouter(prefix="/api", tags=["saved recipes"])


def _store_failure(request: Request, e: Exception) -> HTTPException:
    if request.app.state.settings.is_development:
        message = str(e) or "An unexpected error occurred on the server."
    else:
        message = "An unexpected error occurred. Please try again later."
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


async def _read_save_request(request: Request) -> SaveRecipeRequest:
    # read only after the auth dependency has resolved
    try:
        return SaveRecipeRequest.model_validate_json(await request.body())
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


@router.post(
    "/save",
    status_code=status.HTTP_201_CREATED,
    response_model=SaveRecipeResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": SaveRecipeRequest.model_json_schema()}},
        }
    },
)
async def save_recipe(
    request: Request,
    user: CurrentSupabaseUser = Depends(get_current_supabase_user),
    store: SavedRecipeStore = Depends(get_recipe_store),
):
    body = await _read_save_request(request)
    try:
        saved_id = await store.save(user.id, body.recipeData, body.imageUrl)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.exception("error saving recipe", extra={"userId": user.id})
        raise _store_failure(request, e)

    return SaveRecipeResponse(message="Recipe saved successfully!", savedRecipeId=saved_id)


@router.get("/history", response_model=HistoryResponse)
async def recipe_history(
    request: Request,
    user: CurrentSupabaseUser = Depends(get_current_supabase_user),
    store: SavedRecipeStore = Depends(get_recipe_store),
):
    try:
        recipes = await store.list_for_user(user.id)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.exception("error fetching saved recipes", extra={"userId": user.id})
        raise _store_failure(request, e)

    return HistoryResponse(recipes=recipes)
