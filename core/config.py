# core/config.py
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class ConfigurationError(Exception):
    """A setting required by the current endpoint is missing."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Gemini (recipe text + image)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = Field(default="gemini-2.5-flash")
    GEMINI_TEMP: float = Field(default=0.7, gt=0.0, le=2.0)
    GEMINI_IMAGE_MODEL: str = Field(default="imagen-4.0-generate-001")

    IMAGE_GENERATION_ENABLED: bool = True
    # "supabase" uploads to a public bucket, "inline" returns a data: URL
    IMAGE_STORAGE: Literal["supabase", "inline"] = "supabase"
    RECIPE_IMAGES_BUCKET: str = "recipe-images"

    # Supabase (auth provider + saved recipes store)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    SAVED_RECIPES_TABLE: str = "saved_recipes"

    EXTERNAL_CALL_TIMEOUT: float = Field(default=60.0, gt=0.0)

    APP_ENV: Literal["development", "production"] = "production"
    CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",  # Next.js dev
            "http://localhost:5173",  # Vite dev
        ]
    )
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def supabase_auth_key(self) -> Optional[str]:
        # user lookup prefers the service-role key, anon key works too
        return self.SUPABASE_SERVICE_KEY or self.SUPABASE_ANON_KEY

    def require_gemini_key(self) -> str:
        if not self.GEMINI_API_KEY:
            raise ConfigurationError("Server configuration error: Gemini API key not set.")
        return self.GEMINI_API_KEY

    def require_supabase_url(self) -> str:
        if not self.SUPABASE_URL:
            raise ConfigurationError("Server configuration error: SUPABASE_URL not set.")
        return self.SUPABASE_URL.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
