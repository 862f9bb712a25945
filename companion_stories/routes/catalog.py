"""Public persona and story catalog endpoints."""

from fastapi import APIRouter, HTTPException

from companion_stories import storage
from companion_stories.errors import StoryError

from .deps import to_http_exception

router = APIRouter()


@router.get("/personas")
async def list_personas():
    """List all companion personas."""
    return storage.list_personas()


@router.get("/personas/{persona_id}")
async def get_persona(persona_id: str):
    """Get a single persona."""
    try:
        persona = storage.get_persona(persona_id)
    except StoryError as e:
        raise to_http_exception(e)
    if not persona:
        raise HTTPException(404, "Persona not found")
    return persona


@router.get("/stories")
async def list_stories(tag: str | None = None):
    """List stories, newest first, optionally filtered by tag."""
    return storage.list_stories(tag)


@router.get("/stories/{story_id}")
async def get_story(story_id: str):
    """Get a single story."""
    try:
        story = storage.get_story(story_id)
    except StoryError as e:
        raise to_http_exception(e)
    if not story:
        raise HTTPException(404, "Story not found")
    return story
