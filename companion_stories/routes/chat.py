"""Persona chat endpoints: sessions, message log, sending messages."""

from fastapi import APIRouter, Depends, HTTPException

from companion_stories import chat, storage
from companion_stories.errors import StoryError
from companion_stories.llm import LLM

from .deps import get_chat_llm, to_http_exception
from .models import ChatFavoriteBody, ChatMessageBody

router = APIRouter()


@router.get("/users/{user_id}/chats")
async def list_chats(user_id: str):
    """All of a user's chats, favourites first, then most recent."""
    try:
        return storage.list_chat_sessions(user_id)
    except StoryError as e:
        raise to_http_exception(e)


@router.post("/users/{user_id}/chats/{persona_id}")
async def open_chat(user_id: str, persona_id: str):
    """Start or resume a chat; a new chat opens with the persona's greeting."""
    try:
        session = chat.open_chat(user_id, persona_id)
        messages = storage.get_chat_messages(user_id, persona_id)
    except StoryError as e:
        raise to_http_exception(e)
    return {"session": session, "messages": messages}


@router.get("/users/{user_id}/chats/{persona_id}/messages")
async def get_messages(user_id: str, persona_id: str, limit: int = 50):
    """The latest `limit` messages, oldest first."""
    try:
        if storage.get_chat_session(user_id, persona_id) is None:
            raise HTTPException(404, "No chat with this persona")
        return storage.get_chat_messages(user_id, persona_id, limit=limit)
    except StoryError as e:
        raise to_http_exception(e)


@router.post("/users/{user_id}/chats/{persona_id}/messages")
async def send_message(
    user_id: str,
    persona_id: str,
    body: ChatMessageBody,
    llm: LLM = Depends(get_chat_llm),
):
    """Send a message and get the persona's reply plus the updated streak."""
    try:
        return await chat.send_chat_message(
            user_id, persona_id, body.user_name, body.message,
            llm=llm,
            prompt_template=storage.get_config()["story_roles"]["chat"]["prompt"],
        )
    except StoryError as e:
        raise to_http_exception(e)


@router.patch("/users/{user_id}/chats/{persona_id}")
async def set_favorite(user_id: str, persona_id: str, body: ChatFavoriteBody):
    """Mark or unmark a chat as favourite."""
    try:
        session = storage.set_chat_favorite(user_id, persona_id, body.is_favorite)
    except StoryError as e:
        raise to_http_exception(e)
    if not session:
        raise HTTPException(404, "No chat with this persona")
    return session


@router.delete("/users/{user_id}/chats/{persona_id}")
async def delete_chat(user_id: str, persona_id: str):
    """Forget a chat (messages and streak)."""
    try:
        removed = storage.delete_chat(user_id, persona_id)
    except StoryError as e:
        raise to_http_exception(e)
    if not removed:
        raise HTTPException(404, "No chat with this persona")
    return {"ok": True}
