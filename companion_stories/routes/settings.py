"""Health check and LLM connection check endpoints."""

import httpx
from fastapi import APIRouter, Depends

from companion_stories import admin
from companion_stories.errors import StoryError
from companion_stories.models import AdminCredentials

from .deps import admin_credentials, to_http_exception
from .models import CheckConnectionBody

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.post("/admin/check-connection")
async def check_connection(
    body: CheckConnectionBody, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Quick reachability check against an LLM provider URL."""
    try:
        admin.require_admin(creds)
    except StoryError as e:
        raise to_http_exception(e)

    base = body.provider_url.rstrip("/")
    url = f"{base}/v1/models" if body.provider_format == "openai" else f"{base}/api/v1/model"
    headers: dict[str, str] = {}
    if body.api_key:
        headers["Authorization"] = f"Bearer {body.api_key}"
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            resp = await client.get(url, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPError:
        return {"ok": False}
    return {"ok": True}
