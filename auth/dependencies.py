# auth/dependencies.py
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from core.config import ConfigurationError, Settings
from core.logger import get_logger

logger = get_logger("auth")

# auto_error=False: a missing header must be a 401, not FastAPI's default
http_bearer_scheme = HTTPBearer(auto_error=False)


class CurrentSupabaseUser(BaseModel):
    id: str
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def fetch_supabase_user(token: str, settings: Settings, client: httpx.AsyncClient) -> CurrentSupabaseUser:
    """Exchange a bearer token for the Supabase user it belongs to.

    Every call goes to the auth provider; nothing is cached locally.
    """
    supabase_url = settings.require_supabase_url()
    api_key = settings.supabase_auth_key
    if not api_key:
        raise ConfigurationError("Server configuration error: Supabase service or anon key not set.")

    credentials_exception = _unauthorized("Unauthorized. Invalid or expired token.")

    try:
        response = await client.get(
            f"{supabase_url}/auth/v1/user",
            headers={"Authorization": f"Bearer {token}", "apikey": api_key},
            timeout=settings.EXTERNAL_CALL_TIMEOUT,
        )
        response.raise_for_status()
        user_data = response.json()
    except httpx.HTTPStatusError as e:
        logger.warning("supabase rejected token", extra={"status": e.response.status_code})
        raise credentials_exception
    except httpx.RequestError as e:
        logger.error("error connecting to supabase auth", extra={"error": str(e)})
        raise credentials_exception
    except ValueError:
        logger.error("supabase auth returned a non-JSON body")
        raise credentials_exception

    if not isinstance(user_data, dict) or not user_data.get("id"):
        logger.warning("supabase user payload has no id")
        raise credentials_exception

    return CurrentSupabaseUser(id=user_data["id"], email=user_data.get("email"))


async def get_current_supabase_user(
    request: Request,
    auth_creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer_scheme),
) -> CurrentSupabaseUser:
    if auth_creds is None or not auth_creds.credentials:
        raise _unauthorized("Authorization token not provided.")

    return await fetch_supabase_user(
        auth_creds.credentials,
        request.app.state.settings,
        request.app.state.http_client,
    )
