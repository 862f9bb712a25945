"""Story catalog storage. Stories are write-once; only admins create or delete."""

import re
import uuid
from pathlib import Path
from typing import Any

from companion_stories.models import Story

from .core import check_key, read_json, stories_dir, write_json_atomic


def _story_path(story_id: str) -> Path:
    return stories_dir() / f"{check_key(story_id, 'story id')}.json"


def new_story_id(title: str) -> str:
    """Build a story id from its title plus 6 random hex digits.

    "Monsoon Secrets!" → "monsoon_secrets_3f9a1c"
    """
    stem = re.sub(r"[^a-z0-9]", "_", title.lower())[:80].strip("_") or "story"
    return f"{stem}_{uuid.uuid4().hex[:6]}"


def list_stories(tag: str | None = None) -> list[Story]:
    """All stories, newest first. `tag` filters case-insensitively."""
    stories = [Story.model_validate(read_json(p)) for p in stories_dir().glob("*.json")]
    if tag:
        wanted = tag.lower()
        stories = [s for s in stories if any(t.lower() == wanted for t in s.tags)]
    stories.sort(key=lambda s: s.created_at, reverse=True)
    return stories


def get_story(story_id: str) -> Story | None:
    path = _story_path(story_id)
    if not path.is_file():
        return None
    return Story.model_validate(read_json(path))


def create_story(fields: dict[str, Any]) -> Story:
    story = Story.model_validate({**fields, "id": new_story_id(fields["title"])})
    write_json_atomic(_story_path(story.id), story.model_dump(mode="json"))
    return story


def delete_story(story_id: str) -> bool:
    path = _story_path(story_id)
    if not path.is_file():
        return False
    path.unlink()
    return True


def stories_for_persona(persona_id: str) -> list[Story]:
    return [s for s in list_stories() if s.protagonist_id == persona_id]
