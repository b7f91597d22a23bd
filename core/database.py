# core/database.py
import asyncio
from typing import Awaitable, Callable, Optional

from fastapi import Request
from supabase import AsyncClient, create_async_client

from core.config import ConfigurationError, Settings
from core.logger import get_logger

logger = get_logger("database")

ClientFactory = Callable[[str, str], Awaitable[AsyncClient]]


class SupabaseDatabase:
    """Process-wide handle to the Supabase backend client.

    Built once by the app factory and shared by every request. The client
    itself is created lazily on the first ``get_client()`` call; concurrent
    first callers wait on the same lock so the factory runs exactly once.
    """

    def __init__(self, settings: Settings, client_factory: ClientFactory = create_async_client):
        self._settings = settings
        self._client_factory = client_factory
        self._client: Optional[AsyncClient] = None
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.SUPABASE_URL and self._settings.SUPABASE_SERVICE_KEY)

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def get_client(self) -> AsyncClient:
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                if not self._settings.SUPABASE_URL:
                    raise ConfigurationError("Server configuration error: SUPABASE_URL not set.")
                if not self._settings.SUPABASE_SERVICE_KEY:
                    raise ConfigurationError("Server configuration error: SUPABASE_SERVICE_KEY not set.")

                logger.info("creating supabase backend client", extra={"url": self._settings.SUPABASE_URL})
                self._client = await self._client_factory(
                    self._settings.SUPABASE_URL,
                    self._settings.SUPABASE_SERVICE_KEY,
                )
        return self._client

    async def close(self) -> None:
        """Close the client's HTTP sessions and drop the handle.

        PostgREST and Storage sub-clients are created on first use, so only
        the ones that exist are closed. The next ``get_client()`` reconnects.
        """
        client, self._client = self._client, None
        if client is None:
            return

        logger.info("releasing supabase backend client")
        for name in ("_postgrest", "_storage", "auth"):
            part = getattr(client, name, None)
            if part is not None:
                await part.__aexit__(None, None, None)


def get_database(request: Request) -> SupabaseDatabase:
    return request.app.state.database
