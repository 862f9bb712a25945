"""Administrative catalog operations.

Every function takes an explicit AdminCredentials object and checks it
against the stored admin account before doing anything.
"""

import hmac
import logging
from typing import Any

from pydantic import ValidationError

from companion_stories import storage
from companion_stories.errors import (
    AdminAuthError,
    GenerationError,
    InvalidRequestError,
    NotFoundError,
)
from companion_stories.llm import LLM, LLMError
from companion_stories.models import AdminCredentials, Persona, Story, StoryIdea, parse_tags
from companion_stories.narration import parse_json_output
from companion_stories.prompts import PromptError, render_prompt, story_idea_context

logger = logging.getLogger(__name__)

_PERSONA_FIELDS = {
    "name", "description", "personality_snippet", "base_prompt", "style_tags",
    "default_voice_tone", "avatar_url", "is_premium",
}


def require_admin(credentials: AdminCredentials | None) -> None:
    """Raise AdminAuthError unless `credentials` match the stored admin account."""
    if credentials is None:
        raise AdminAuthError("Admin credentials required")
    stored = storage.get_admin_credentials()
    if stored is None:
        raise AdminAuthError("Admin credentials have not been configured")
    user_ok = hmac.compare_digest(credentials.username.encode(), stored.username.encode())
    pass_ok = hmac.compare_digest(credentials.password.encode(), stored.password.encode())
    if not (user_ok and pass_ok):
        logger.warning("admin auth failed user=%s", credentials.username)
        raise AdminAuthError("Invalid username or password")


def _persona_fields(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = {k: v for k, v in fields.items() if k in _PERSONA_FIELDS and v is not None}
    if isinstance(cleaned.get("style_tags"), str):
        cleaned["style_tags"] = parse_tags(cleaned["style_tags"])
    if "name" in cleaned:
        cleaned["name"] = cleaned["name"].strip()
        if not cleaned["name"]:
            raise InvalidRequestError("Persona name cannot be empty")
    return cleaned


# ── Personas ─────────────────────────────────────────────


def create_persona(credentials: AdminCredentials, fields: dict[str, Any]) -> Persona:
    require_admin(credentials)
    cleaned = _persona_fields(fields)
    if "name" not in cleaned:
        raise InvalidRequestError("Persona name is required")
    persona = storage.create_persona(cleaned)
    logger.info("persona created id=%s", persona.id)
    return persona


def update_persona(
    credentials: AdminCredentials, persona_id: str, fields: dict[str, Any]
) -> Persona:
    require_admin(credentials)
    updated = storage.update_persona(persona_id, _persona_fields(fields))
    if updated is None:
        raise NotFoundError(f"Persona {persona_id!r} not found")
    logger.info("persona updated id=%s", persona_id)
    return updated


def delete_persona(credentials: AdminCredentials, persona_id: str) -> int:
    """Delete a persona, its stories, all progress on them and every chat with it.

    Returns the number of stories removed.
    """
    require_admin(credentials)
    if storage.get_persona(persona_id) is None:
        raise NotFoundError(f"Persona {persona_id!r} not found")
    stories = storage.stories_for_persona(persona_id)
    for story in stories:
        storage.delete_story_progress(story.id)
        storage.delete_story(story.id)
    chats = storage.delete_persona_chats(persona_id)
    storage.delete_persona(persona_id)
    logger.info(
        "persona deleted id=%s stories_removed=%d chats_removed=%d",
        persona_id, len(stories), chats,
    )
    return len(stories)


# ── Stories ──────────────────────────────────────────────


def create_story(credentials: AdminCredentials, fields: dict[str, Any]) -> Story:
    """Create a story for an existing protagonist.

    `tags` may be a list or a comma-separated string. Title and opening
    situation must be non-blank.
    """
    require_admin(credentials)
    title = (fields.get("title") or "").strip()
    opening = (fields.get("opening_situation") or "").strip()
    protagonist_id = fields.get("protagonist_id") or ""
    if not protagonist_id:
        raise InvalidRequestError("A protagonist must be selected for the story")
    if not title:
        raise InvalidRequestError("Story title is required")
    if not opening:
        raise InvalidRequestError("Opening situation is required")

    persona = storage.get_persona(protagonist_id)
    if persona is None:
        raise NotFoundError(f"Protagonist {protagonist_id!r} not found")

    tags = fields.get("tags") or []
    if isinstance(tags, str):
        tags = parse_tags(tags)

    story = storage.create_story({
        "title": title,
        "description": fields.get("description") or "",
        "protagonist_id": persona.id,
        "protagonist_name_snapshot": persona.name,
        "tags": tags,
        "opening_situation": opening,
        "cover_image_url": fields.get("cover_image_url"),
    })
    logger.info("story created id=%s protagonist=%s", story.id, persona.id)
    return story


def delete_story(credentials: AdminCredentials, story_id: str) -> int:
    """Delete a story and every player's progress on it.

    Returns the number of progress records removed.
    """
    require_admin(credentials)
    if not storage.delete_story(story_id):
        raise NotFoundError(f"Story {story_id!r} not found")
    removed = storage.delete_story_progress(story_id)
    logger.info("story deleted id=%s progress_removed=%d", story_id, removed)
    return removed


async def generate_story_idea(
    credentials: AdminCredentials,
    persona_id: str,
    *,
    llm: LLM,
    prompt_template: str,
) -> StoryIdea:
    """Ask the story_idea role for a draft story starring `persona_id`."""
    require_admin(credentials)
    persona = storage.get_persona(persona_id)
    if persona is None:
        raise NotFoundError(f"Persona {persona_id!r} not found")
    try:
        prompt = render_prompt(prompt_template, story_idea_context(persona))
    except PromptError as e:
        raise GenerationError(f"Prompt template error (story_idea): {e}") from e
    try:
        text = await llm("story_idea", prompt)
    except LLMError as e:
        raise GenerationError(str(e)) from e

    raw = parse_json_output(text)
    if not isinstance(raw, dict):
        raise GenerationError("The AI failed to generate a story idea. Please try again.")
    try:
        return StoryIdea.model_validate(raw)
    except ValidationError as e:
        raise GenerationError("The AI returned an incomplete story idea. Please try again.") from e


# ── Analytics ────────────────────────────────────────────


def story_usage_stats(credentials: AdminCredentials) -> list[dict[str, Any]]:
    """Players per story, most played first. Stories nobody started count 0."""
    require_admin(credentials)
    counts = storage.count_players_by_story()
    stats = [
        {"story_id": s.id, "title": s.title, "players": counts.get(s.id, 0)}
        for s in storage.list_stories()
    ]
    stats.sort(key=lambda row: (-row["players"], row["title"].lower()))
    return stats


def persona_usage_stats(credentials: AdminCredentials) -> list[dict[str, Any]]:
    """Users chatting with each persona, most popular first."""
    require_admin(credentials)
    counts = storage.count_chatters_by_persona()
    stats = [
        {"persona_id": p.id, "name": p.name, "chats": counts.get(p.id, 0)}
        for p in storage.list_personas()
    ]
    stats.sort(key=lambda row: (-row["chats"], row["name"].lower()))
    return stats
