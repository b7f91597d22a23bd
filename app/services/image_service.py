"""Best-effort recipe photo.

The image step never fails a generation request: every error path ends in
``None`` and a log line, and the response simply goes out without
``imageUrl``.
"""
from __future__ import annotations

import asyncio
import base64
import uuid
from typing import Optional, Protocol

from app.schemas.recipe_schemas import Recipe
from core.config import Settings
from core.database import SupabaseDatabase
from core.logger import get_logger

logger = get_logger("images")

MAX_PROMPT_INGREDIENTS = 5
MAX_PROMPT_STEPS = 3


class ImageGenerator(Protocol):
    async def generate_image(self, prompt: str) -> Optional[bytes]: ...


def build_image_prompt(recipe: Recipe) -> str:
    title = recipe.title
    ingredients = [str(i) for i in (recipe.ingredients or [])[:MAX_PROMPT_INGREDIENTS]]
    steps = [str(s) for s in (recipe.instructions or [])[:MAX_PROMPT_STEPS]]

    lines = [
        f"Ultra-realistic photograph of '{title}', styled like a professional magazine food photo.",
    ]
    if ingredients:
        lines.append(f"Key ingredients visible in the dish: {', '.join(ingredients)}.")
    if steps:
        lines.append(f"The dish is prepared as follows: {' '.join(steps)}")
    lines += [
        "Use natural lighting with soft shadows, realistic colors, and authentic textures "
        "(visible grains, slight imperfections, natural steam or moisture).",
        "Beautifully plated on a clean surface with real-world imperfections like crumbs or sauce smears.",
        "Shallow depth of field with a softly blurred background for a natural DSLR look.",
        "",
        "Important: the image must only show the food and background.",
        "Do NOT include: cameras, camera lenses, human hands, people, reflections, photography "
        "equipment, tripods, studio lights, lens flare, camera flash, watermark, text.",
    ]
    return "\n".join(lines)


class RecipeImageService:
    def __init__(self, settings: Settings, generator: ImageGenerator, database: SupabaseDatabase):
        self._settings = settings
        self._generator = generator
        self._database = database

    async def create_image_url(self, recipe: Recipe) -> Optional[str]:
        if not self._settings.IMAGE_GENERATION_ENABLED:
            return None

        try:
            image_bytes = await self._generator.generate_image(build_image_prompt(recipe))
            if not image_bytes:
                logger.warning("image generation returned no data, skipping image", extra={"title": recipe.title})
                return None
            url = await self._publish(image_bytes)
        except asyncio.TimeoutError:
            logger.error("image generation timed out", extra={"title": recipe.title})
            return None
        except Exception as e:
            logger.error(
                "error generating recipe image",
                extra={
                    "title": recipe.title,
                    "error": str(e),
                    "code": getattr(e, "code", None),
                    "status": getattr(e, "status", None),
                },
            )
            return None

        logger.info("generated recipe image", extra={"title": recipe.title})
        return url

    async def _publish(self, image_bytes: bytes) -> str:
        if self._settings.IMAGE_STORAGE == "inline":
            return "data:image/png;base64," + base64.b64encode(image_bytes).decode("ascii")

        bucket = self._settings.RECIPE_IMAGES_BUCKET
        path = f"generated/{uuid.uuid4().hex}.png"
        client = await self._database.get_client()
        await client.storage.from_(bucket).upload(
            path=path,
            file=image_bytes,
            file_options={"content-type": "image/png", "cache-control": "31536000"},
        )
        return f"{self._settings.require_supabase_url()}/storage/v1/object/public/{bucket}/{path}"
