"""Shared route helpers: admin credentials dependency and error mapping."""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from companion_stories import storage
from companion_stories.errors import (
    AdminAuthError,
    GenerationError,
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    StoryError,
    VersionConflictError,
)
from companion_stories.llm import LLM, llm_for_role
from companion_stories.models import AdminCredentials
from companion_stories.narration import NarrationProvider, narrator_from_config

_basic = HTTPBasic(auto_error=False)

_STATUS: list[tuple[type[StoryError], int]] = [
    (NotFoundError, 404),
    (InvalidRequestError, 400),
    (AdminAuthError, 401),
    (VersionConflictError, 409),
    (GenerationError, 502),
    (PersistenceError, 503),
]


def to_http_exception(error: StoryError) -> HTTPException:
    for error_type, status in _STATUS:
        if isinstance(error, error_type):
            headers = {"WWW-Authenticate": "Basic"} if status == 401 else None
            return HTTPException(status, str(error), headers=headers)
    return HTTPException(500, str(error))


async def admin_credentials(
    basic: HTTPBasicCredentials | None = Depends(_basic),
) -> AdminCredentials | None:
    """Turn an HTTP Basic header into AdminCredentials (None when absent)."""
    if basic is None:
        return None
    return AdminCredentials(username=basic.username, password=basic.password)


def get_narrator() -> NarrationProvider:
    """Narration Provider for the turn endpoint (overridden in tests)."""
    try:
        return narrator_from_config(storage.get_config())
    except GenerationError as e:
        raise HTTPException(400, str(e))


def get_story_idea_llm() -> LLM:
    """LLM assigned to the story_idea role (overridden in tests)."""
    llm = llm_for_role(storage.get_config(), "story_idea")
    if llm is None:
        raise HTTPException(400, "Story idea role is not assigned; configure it in Settings")
    return llm


def get_chat_llm() -> LLM:
    """LLM assigned to the chat role (overridden in tests)."""
    llm = llm_for_role(storage.get_config(), "chat")
    if llm is None:
        raise HTTPException(400, "Chat role is not assigned; configure it in Settings")
    return llm
