"""Connection cache: one backend client per process."""

import asyncio
from types import SimpleNamespace

import pytest

from core.config import ConfigurationError
from core.database import SupabaseDatabase


@pytest.mark.asyncio
async def test_repeated_calls_reuse_one_client(database, supabase_client, connect_calls):
    first = await database.get_client()
    second = await database.get_client()

    assert first is second is supabase_client
    assert connect_calls == [("https://project.supabase.co", "service-key")]


@pytest.mark.asyncio
async def test_concurrent_first_use_connects_once(settings):
    calls = 0

    async def slow_factory(url, key):
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return object()

    database = SupabaseDatabase(settings, client_factory=slow_factory)
    clients = await asyncio.gather(*(database.get_client() for _ in range(10)))

    assert calls == 1
    assert all(c is clients[0] for c in clients)


@pytest.mark.asyncio
async def test_failed_connect_is_retried_on_next_use(settings):
    attempts = []

    async def flaky_factory(url, key):
        attempts.append(url)
        if len(attempts) == 1:
            raise ConnectionError("unreachable")
        return "client"

    database = SupabaseDatabase(settings, client_factory=flaky_factory)
    with pytest.raises(ConnectionError):
        await database.get_client()

    assert await database.get_client() == "client"
    assert len(attempts) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ("SUPABASE_URL", "SUPABASE_SERVICE_KEY"))
async def test_missing_configuration(settings, connect_calls, database, missing):
    setattr(settings, missing, None)

    assert not database.is_configured
    with pytest.raises(ConfigurationError, match=missing):
        await database.get_client()
    assert connect_calls == []


@pytest.mark.asyncio
async def test_close_drops_handle(database, connect_calls):
    await database.get_client()
    assert database.is_connected

    await database.close()

    assert not database.is_connected
    await database.get_client()
    assert len(connect_calls) == 2


class _Session:
    def __init__(self):
        self.closed = False

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True


@pytest.mark.asyncio
async def test_close_releases_http_sessions(settings):
    client = SimpleNamespace(_postgrest=_Session(), _storage=None, auth=_Session())

    async def factory(url, key):
        return client

    database = SupabaseDatabase(settings, client_factory=factory)
    await database.get_client()
    await database.close()

    assert client._postgrest.closed
    assert client.auth.closed
    # a second close is a no-op
    await database.close()


@pytest.mark.asyncio
async def test_close_before_first_use(database, connect_calls):
    await database.close()

    assert connect_calls == []
