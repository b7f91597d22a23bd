"""Saving recipes and reading them back."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from main import INVALID_JSON_MESSAGE, create_app
from tests.fakes import api_client, bearer

TABLE = "saved_recipes"


def _seed(supabase_client, user_id: str, title: str, saved_at: datetime) -> None:
    table = supabase_client.table(TABLE)._table
    table.rows.append(
        {
            "id": f"seed-{len(table.rows) + 1}",
            "user_id": user_id,
            "recipe": {"title": title, "ingredients": [], "instructions": []},
            "image_url": f"https://img/{title}.png",
            "saved_at": saved_at.isoformat(),
        }
    )


@pytest.mark.asyncio
async def test_save_recipe(app, supabase_client):
    recipe = {"title": "Chicken Rice Bowl", "ingredients": ["chicken"], "instructions": ["cook"]}

    async with api_client(app) as client:
        response = await client.post(
            "/api/save",
            json={"recipeData": recipe, "imageUrl": "https://img/bowl.png"},
            headers=bearer("token-alice"),
        )

    assert response.status_code == 201
    assert response.json() == {"message": "Recipe saved successfully!", "savedRecipeId": "rec-1"}

    (row,) = supabase_client.tables[TABLE].rows
    assert row["user_id"] == "user-alice"
    assert row["recipe"] == recipe
    assert row["image_url"] == "https://img/bowl.png"
    saved_at = datetime.fromisoformat(row["saved_at"])
    assert abs(datetime.now(timezone.utc) - saved_at) < timedelta(minutes=1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,field",
    (
        ({"imageUrl": "https://img"}, "recipeData"),
        ({"recipeData": "not an object", "imageUrl": "https://img"}, "recipeData"),
        ({"recipeData": {"title": "x"}}, "imageUrl"),
        ({"recipeData": {"title": "x"}, "imageUrl": ""}, "imageUrl"),
        ({"recipeData": {"title": "x"}, "imageUrl": 42}, "imageUrl"),
    ),
)
async def test_save_rejects_invalid_payload(app, supabase_client, payload, field):
    async with api_client(app) as client:
        response = await client.post("/api/save", json=payload, headers=bearer("token-alice"))

    assert response.status_code == 400
    assert field in response.json()["message"]
    assert TABLE not in supabase_client.tables


@pytest.mark.asyncio
async def test_save_store_failure_is_500(app, supabase_client):
    supabase_client.table(TABLE)._table.fail_with = RuntimeError("write rejected")

    async with api_client(app) as client:
        response = await client.post(
            "/api/save",
            json={"recipeData": {"title": "x"}, "imageUrl": "https://img"},
            headers=bearer("token-alice"),
        )

    assert response.status_code == 500
    assert response.json()["message"] == "write rejected"


@pytest.mark.asyncio
async def test_store_failure_message_is_generic_in_production(settings, database, gemini, auth_server, supabase_client):
    settings.APP_ENV = "production"
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(auth_server.handler))
    app = create_app(settings, database=database, http_client=http_client, llm=gemini)
    supabase_client.table(TABLE)._table.fail_with = RuntimeError("connection string leaked")

    async with api_client(app) as client:
        response = await client.get("/api/history", headers=bearer("token-alice"))

    assert response.status_code == 500
    assert response.json()["message"] == "An unexpected error occurred. Please try again later."


@pytest.mark.asyncio
async def test_history_is_per_user_and_newest_first(app, supabase_client):
    now = datetime.now(timezone.utc)
    _seed(supabase_client, "user-alice", "old", now - timedelta(days=2))
    _seed(supabase_client, "user-bob", "bob's", now - timedelta(days=1))
    _seed(supabase_client, "user-alice", "new", now)
    _seed(supabase_client, "user-alice", "middle", now - timedelta(days=1))

    async with api_client(app) as client:
        alice = await client.get("/api/history", headers=bearer("token-alice"))
        bob = await client.get("/api/history", headers=bearer("token-bob"))

    assert alice.status_code == 200
    records = alice.json()["recipes"]
    assert [r["recipe"]["title"] for r in records] == ["new", "middle", "old"]
    assert {r["userId"] for r in records} == {"user-alice"}
    assert set(records[0]) == {"id", "userId", "recipe", "imageUrl", "savedAt"}
    assert records[0]["imageUrl"] == "https://img/new.png"

    assert [r["recipe"]["title"] for r in bob.json()["recipes"]] == ["bob's"]


@pytest.mark.asyncio
async def test_history_empty(app):
    async with api_client(app) as client:
        response = await client.get("/api/history", headers=bearer("token-bob"))

    assert response.status_code == 200
    assert response.json() == {"recipes": []}


@pytest.mark.asyncio
async def test_save_then_history_round_trip(app, connect_calls):
    async with api_client(app) as client:
        await client.post(
            "/api/save",
            json={"recipeData": {"title": "Pho"}, "imageUrl": "https://img/pho.png"},
            headers=bearer("token-bob"),
        )
        response = await client.get("/api/history", headers=bearer("token-bob"))

    (record,) = response.json()["recipes"]
    assert record["recipe"] == {"title": "Pho"}
    assert record["userId"] == "user-bob"
    # one backend client for the whole process
    assert len(connect_calls) == 1


@pytest.mark.asyncio
async def test_save_malformed_json_after_auth_is_400(app, supabase_client):
    async with api_client(app) as client:
        response = await client.post(
            "/api/save",
            content=b'{"recipeData": ',
            headers={**bearer("token-alice"), "Content-Type": "application/json"},
        )

    assert response.status_code == 400
    assert response.json()["message"] == INVALID_JSON_MESSAGE
    assert TABLE not in supabase_client.tables
