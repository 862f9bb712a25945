"""Player progress + story turn endpoints.

User ids arrive already authenticated by the external identity provider.
"""

from fastapi import APIRouter, Depends, HTTPException

from companion_stories import storage
from companion_stories.engine import advance_turn
from companion_stories.errors import StoryError
from companion_stories.narration import NarrationProvider

from .deps import get_narrator, to_http_exception
from .models import TurnBody

router = APIRouter()


@router.get("/users/{user_id}/progress")
async def list_progress(user_id: str):
    """All of a user's stories in progress, most recently played first."""
    try:
        return storage.list_progress(user_id)
    except StoryError as e:
        raise to_http_exception(e)


@router.get("/users/{user_id}/stories/{story_id}/progress")
async def get_progress(user_id: str, story_id: str):
    """Current context + history for one story."""
    try:
        progress = storage.get_progress(user_id, story_id)
    except StoryError as e:
        raise to_http_exception(e)
    if not progress:
        raise HTTPException(404, "No progress for this story")
    return progress


@router.delete("/users/{user_id}/stories/{story_id}/progress")
async def delete_progress(user_id: str, story_id: str):
    """Forget a user's progress so the story starts over."""
    try:
        removed = storage.delete_progress(user_id, story_id)
    except StoryError as e:
        raise to_http_exception(e)
    if not removed:
        raise HTTPException(404, "No progress for this story")
    return {"ok": True}


@router.post("/users/{user_id}/stories/{story_id}/turn")
async def story_turn(
    user_id: str,
    story_id: str,
    body: TurnBody,
    narrator: NarrationProvider = Depends(get_narrator),
):
    """Send the player's action (typed or a picked choice) and get the next beat."""
    try:
        return await advance_turn(
            user_id, story_id, body.player_name, body.message, narrator=narrator,
        )
    except StoryError as e:
        raise to_http_exception(e)
