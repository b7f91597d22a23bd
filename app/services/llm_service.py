from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from fastapi import HTTPException, Request, status
from google import genai                               # new SDK entrypoint
from google.genai import errors as genai_errors        # APIError / ClientError / ServerError
from google.genai import types                         # GenerateContentConfig, GenerateImagesConfig

from app.schemas.recipe_schemas import (
    GeneratedRecipe,
    GenerationResult,
    ParsedRecipe,
    RecipeParseFailure,
)
from app.services.prompt_builder import SYSTEM_INSTRUCTION
from app.services.recipe_parser import parse_recipe_response
from core.config import Settings
from core.logger import get_logger

logger = get_logger("llm")


class RecipeImageMaker(Protocol):
    async def create_image_url(self, recipe) -> Optional[str]: ...


class GeminiRecipeClient:
    """Thin async wrapper around the synchronous google-genai client.

    SDK calls run on a worker thread so the event loop is never blocked, and
    each call is bounded by ``EXTERNAL_CALL_TIMEOUT``.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._settings.require_gemini_key())
            logger.info("gemini client initialized", extra={"model": self._settings.GEMINI_MODEL_NAME})
        return self._client

    async def complete(self, prompt: str) -> Optional[str]:
        client = self._get_client()
        cfg = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            response_mime_type="application/json",
            temperature=self._settings.GEMINI_TEMP,
        )
        response = await asyncio.wait_for(
            asyncio.to_thread(
                client.models.generate_content,
                model=self._settings.GEMINI_MODEL_NAME,
                contents=prompt,
                config=cfg,
            ),
            timeout=self._settings.EXTERNAL_CALL_TIMEOUT,
        )
        return response.text

    async def generate_image(self, prompt: str) -> Optional[bytes]:
        client = self._get_client()
        cfg = types.GenerateImagesConfig(
            number_of_images=1,
            aspect_ratio="1:1",
            output_mime_type="image/png",
        )
        response = await asyncio.wait_for(
            asyncio.to_thread(
                client.models.generate_images,
                model=self._settings.GEMINI_IMAGE_MODEL,
                prompt=prompt,
                config=cfg,
            ),
            timeout=self._settings.EXTERNAL_CALL_TIMEOUT,
        )
        if not response.generated_images:
            return None
        image = response.generated_images[0].image
        return image.image_bytes if image else None


def _summarize_exc(e: Exception) -> str:
    cls = e.__class__.__name__
    code = getattr(e, "code", None)
    state = getattr(e, "status", None)
    return f"{cls} code={code} status={state} msg={getattr(e, 'message', None) or e}"


class RecipeGenerationService:
    """Prompt → completion → parse → image, in that order, once each."""

    def __init__(self, settings: Settings, llm: GeminiRecipeClient, images: RecipeImageMaker):
        self._settings = settings
        self._llm = llm
        self._images = images

    async def generate(self, prompt: str) -> GenerationResult:
        self._settings.require_gemini_key()

        try:
            raw = await self._llm.complete(prompt)
        except genai_errors.APIError as e:
            logger.error("gemini completion rejected", extra={"detail": _summarize_exc(e)})
            provider_msg = e.message or str(e)
            raise HTTPException(
                status_code=e.code if isinstance(e.code, int) and 400 <= e.code < 600 else 500,
                detail={
                    "message": f"Gemini API Error: {provider_msg}. Check your API key, usage limits, or prompt.",
                    "details": provider_msg,
                },
            )
        except asyncio.TimeoutError:
            logger.error("gemini completion timed out", extra={"timeout": self._settings.EXTERNAL_CALL_TIMEOUT})
            raise HTTPException(status.HTTP_504_GATEWAY_TIMEOUT, "Recipe generation timed out. Please try again.")
        except HTTPException:
            raise
        except Exception as e:
            logger.exception("unexpected error during recipe generation")
            detail = {"message": "Internal Server Error during recipe generation."}
            if self._settings.is_development:
                detail["error"] = str(e)
            raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

        if not raw:
            logger.error("gemini returned no text content")
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "The AI did not return any recipe content. This might indicate an issue with the model response structure.",
            )

        result = parse_recipe_response(raw)
        if not isinstance(result, ParsedRecipe):
            logger.warning(
                "could not parse recipe JSON",
                extra={"detail": result.detail, "rawPreview": raw[:200]},
            )
            return RecipeParseFailure(raw_text=raw, error_details=result.detail)

        image_url = await self._images.create_image_url(result.recipe)
        return GeneratedRecipe(recipe=result.recipe, image_url=image_url)


def get_generation_service(request: Request) -> RecipeGenerationService:
    return request.app.state.generation_service
