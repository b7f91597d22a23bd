"""Shared fixtures: settings, in-memory Supabase, fake Gemini, mock auth."""

import httpx
import pytest

from core.config import Settings
from core.database import SupabaseDatabase
from main import create_app
from tests.fakes import SUPABASE_URL, AuthServer, FakeGemini, FakeSupabaseClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="test-gemini-key",
        SUPABASE_URL=SUPABASE_URL,
        SUPABASE_ANON_KEY="anon-key",
        SUPABASE_SERVICE_KEY="service-key",
        APP_ENV="development",
        LOG_FORMAT="text",
    )


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def connect_calls() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def database(settings, supabase_client, connect_calls) -> SupabaseDatabase:
    async def factory(url: str, key: str):
        connect_calls.append((url, key))
        return supabase_client

    return SupabaseDatabase(settings, client_factory=factory)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def auth_server() -> AuthServer:
    return AuthServer()


@pytest.fixture
def app(settings, database, gemini, auth_server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(auth_server.handler))
    return create_app(settings, database=database, http_client=http_client, llm=gemini)
