from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
import httpx

from config import settings
from errors import BadRequest


async def _fetch_user(access_token: str) -> dict:
    headers = {
        "Authorization": f"Bearer {access_token}",
        "apikey": settings.supabase_anon_key,
    }
    url = f"{settings.supabase_url}/auth/v1/user"
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(url, headers=headers)
    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth token"
        )
    return response.json()


async def require_bearer_token(
    authorization: str | None = Header(default=None, convert_underscores=False),
) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing auth token"
        )
    return authorization.split(" ", 1)[1]


async def ensure_token_owner(access_token: str, user_id: str) -> None:
    """Reject a token that belongs to someone other than ``user_id``.

    Only active with VERIFY_TOKEN_OWNER; otherwise ownership is decided by
    the claimed user id alone.
    """
    if not settings.verify_token_owner:
        return
    user = await _fetch_user(access_token)
    if user.get("id") != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token does not match user",
        )


async def get_request_user_id(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    access_token: str = Depends(require_bearer_token),
) -> str:
    if not user_id:
        raise BadRequest("User ID required")
    await ensure_token_owner(access_token, user_id)
    return user_id
