# app/services/recipe_store.py
from datetime import datetime, timezone
from typing import Any

from fastapi import Request

from app.schemas.recipe_schemas import SavedRecipeRecord
from core.database import SupabaseDatabase
from core.logger import get_logger

logger = get_logger("store")


class RecipeStoreError(Exception):
    pass


class SavedRecipeStore:
    """Saved recipes, one row per save, owned by the user who saved it."""

    def __init__(self, database: SupabaseDatabase, table: str):
        self._database = database
        self._table = table

    async def save(self, user_id: str, recipe: dict[str, Any], image_url: str) -> str:
        client = await self._database.get_client()
        row = {
            "user_id": user_id,
            "recipe": recipe,
            "image_url": image_url,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        response = await client.table(self._table).insert(row).execute()

        if not response.data:
            raise RecipeStoreError("Failed to insert recipe into database (no row returned).")
        saved_id = str(response.data[0]["id"])
        logger.info("saved recipe", extra={"userId": user_id, "savedRecipeId": saved_id})
        return saved_id

    async def list_for_user(self, user_id: str) -> list[SavedRecipeRecord]:
        client = await self._database.get_client()
        response = await (
            client.table(self._table)
            .select("id, user_id, recipe, image_url, saved_at")
            .eq("user_id", user_id)
            .order("saved_at", desc=True)
            .execute()
        )
        rows = response.data or []
        logger.info("fetched saved recipes", extra={"userId": user_id, "count": len(rows)})
        return [SavedRecipeRecord.model_validate({**r, "id": str(r["id"])}) for r in rows]


def get_recipe_store(request: Request) -> SavedRecipeStore:
    return request.app.state.recipe_store
