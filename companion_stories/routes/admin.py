"""Admin panel endpoints. Every call carries HTTP Basic admin credentials."""

from fastapi import APIRouter, Depends

from companion_stories import admin, storage
from companion_stories.errors import StoryError
from companion_stories.llm import LLM
from companion_stories.models import AdminCredentials

from .deps import admin_credentials, get_story_idea_llm, to_http_exception
from .models import (
    AdminLogin,
    CreatePersona,
    CreateStory,
    StoryIdeaBody,
    UpdatePersona,
    UpdateSettings,
)

router = APIRouter(prefix="/admin")


@router.post("/login")
async def login(body: AdminLogin):
    """Check admin credentials (the client then sends them as Basic auth)."""
    try:
        admin.require_admin(AdminCredentials(username=body.username, password=body.password))
    except StoryError as e:
        raise to_http_exception(e)
    return {"ok": True}


@router.post("/personas", status_code=201)
async def create_persona(
    body: CreatePersona, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Create a companion persona."""
    try:
        return admin.create_persona(creds, body.model_dump())
    except StoryError as e:
        raise to_http_exception(e)


@router.patch("/personas/{persona_id}")
async def update_persona(
    persona_id: str,
    body: UpdatePersona,
    creds: AdminCredentials | None = Depends(admin_credentials),
):
    """Update persona fields."""
    try:
        return admin.update_persona(creds, persona_id, body.model_dump(exclude_none=True))
    except StoryError as e:
        raise to_http_exception(e)


@router.delete("/personas/{persona_id}")
async def delete_persona(
    persona_id: str, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Delete a persona together with its stories and their progress."""
    try:
        removed = admin.delete_persona(creds, persona_id)
    except StoryError as e:
        raise to_http_exception(e)
    return {"ok": True, "stories_removed": removed}


@router.post("/stories", status_code=201)
async def create_story(
    body: CreateStory, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Create an interactive story."""
    try:
        return admin.create_story(creds, body.model_dump())
    except StoryError as e:
        raise to_http_exception(e)


@router.delete("/stories/{story_id}")
async def delete_story(
    story_id: str, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Delete a story and all user progress on it."""
    try:
        removed = admin.delete_story(creds, story_id)
    except StoryError as e:
        raise to_http_exception(e)
    return {"ok": True, "progress_removed": removed}


@router.post("/story-idea")
async def story_idea(
    body: StoryIdeaBody,
    creds: AdminCredentials | None = Depends(admin_credentials),
    llm: LLM = Depends(get_story_idea_llm),
):
    """Draft a story (title, description, tags, opening) for a persona."""
    try:
        return await admin.generate_story_idea(
            creds, body.persona_id,
            llm=llm,
            prompt_template=storage.get_config()["story_roles"]["story_idea"]["prompt"],
        )
    except StoryError as e:
        raise to_http_exception(e)


@router.get("/stats/stories")
async def story_stats(creds: AdminCredentials | None = Depends(admin_credentials)):
    """Players per story."""
    try:
        return admin.story_usage_stats(creds)
    except StoryError as e:
        raise to_http_exception(e)


@router.get("/stats/personas")
async def persona_stats(creds: AdminCredentials | None = Depends(admin_credentials)):
    """Users chatting with each persona."""
    try:
        return admin.persona_usage_stats(creds)
    except StoryError as e:
        raise to_http_exception(e)


@router.get("/settings")
async def get_settings(creds: AdminCredentials | None = Depends(admin_credentials)):
    """Get LLM connections and story roles."""
    try:
        admin.require_admin(creds)
    except StoryError as e:
        raise to_http_exception(e)
    return storage.get_config()


@router.patch("/settings")
async def update_settings(
    body: UpdateSettings, creds: AdminCredentials | None = Depends(admin_credentials)
):
    """Update LLM connections / story roles (partial merge)."""
    try:
        admin.require_admin(creds)
        return storage.update_config(body.model_dump(exclude_none=True))
    except StoryError as e:
        raise to_http_exception(e)
