"""Persona chat storage (one file per user + persona).

data/chats/<user_id>/<persona_id>.json holds the session summary, the
daily streak and the append-only message log:

    {"session": {...ChatSession}, "messages": [{...ChatMessage}, ...]}

Every change rewrites the file atomically, so a user message, its reply
and the streak update land together.
"""

import logging
import threading
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path

from companion_stories.errors import NotFoundError, PersistenceError
from companion_stories.models import (
    ChatMessage,
    ChatReply,
    ChatSession,
    ChatStreak,
    Persona,
    StreakUpdate,
    utcnow,
)

from .core import chats_dir, check_key, read_json, write_json_atomic

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

_write_lock = threading.Lock()


def _user_dir(user_id: str) -> Path:
    return chats_dir() / check_key(user_id, "user id")


def _chat_path(user_id: str, persona_id: str) -> Path:
    return _user_dir(user_id) / f"{check_key(persona_id, 'persona id')}.json"


def _read(path: Path) -> tuple[ChatSession, list[ChatMessage]]:
    try:
        raw = read_json(path)
        session = ChatSession.model_validate(raw["session"])
        messages = [ChatMessage.model_validate(m) for m in raw.get("messages", [])]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error("unreadable chat file %s: %s", path, e)
        raise PersistenceError(f"Could not read chat {path.name}: {e}") from e
    return session, messages


def _write(path: Path, session: ChatSession, messages: list[ChatMessage]) -> None:
    write_json_atomic(path, {
        "session": session.model_dump(mode="json"),
        "messages": [m.model_dump(mode="json") for m in messages],
    })


def _message(sender: str, text: str, timestamp: datetime) -> ChatMessage:
    return ChatMessage(id=uuid.uuid4().hex, sender=sender, text=text, timestamp=timestamp)


def advance_streak(streak: ChatStreak, today: date) -> tuple[ChatStreak, StreakUpdate]:
    """Apply one chat on `today` to a streak.

    Same day keeps the count, the day after the last chat extends it, any
    longer gap (or no history) starts over at 1.
    """
    if streak.last_chat_date is None:
        count, status = 1, "first_ever"
    elif streak.last_chat_date == today:
        count, status = streak.current_streak, "maintained_same_day"
    elif streak.last_chat_date == today - timedelta(days=1):
        count, status = streak.current_streak + 1, "continued"
    else:
        count, status = 1, "reset"
    return ChatStreak(current_streak=count, last_chat_date=today), StreakUpdate(streak=count, status=status)


# ── Sessions ─────────────────────────────────────────────


def get_chat(user_id: str, persona_id: str) -> tuple[ChatSession, list[ChatMessage]] | None:
    path = _chat_path(user_id, persona_id)
    if not path.is_file():
        return None
    return _read(path)


def get_chat_session(user_id: str, persona_id: str) -> ChatSession | None:
    chat = get_chat(user_id, persona_id)
    return chat[0] if chat else None


def get_or_create_chat_session(
    user_id: str, persona: Persona, greeting: str
) -> tuple[ChatSession, bool]:
    """Return the user's session with `persona`, creating it on first contact.

    A new session starts with `greeting` as the persona's first message.
    Returns (session, created).
    """
    path = _chat_path(user_id, persona.id)
    with _write_lock:
        if path.is_file():
            return _read(path)[0], False
        now = utcnow()
        first = _message("ai", greeting, now)
        session = ChatSession(
            user_id=user_id,
            persona_id=persona.id,
            persona_name=persona.name,
            persona_avatar_url=persona.avatar_url,
            created_at=now,
            updated_at=now,
            last_message_text=greeting[:PREVIEW_LENGTH],
            last_message_at=now,
        )
        _write(path, session, [first])
    logger.info("chat started user=%s persona=%s", user_id, persona.id)
    return session, True


def list_chat_sessions(user_id: str) -> list[ChatSession]:
    """Favourites first, then most recently active."""
    user_dir = _user_dir(user_id)
    if not user_dir.is_dir():
        return []
    sessions = [_read(p)[0] for p in user_dir.glob("*.json")]
    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    sessions.sort(key=lambda s: not s.is_favorite)
    return sessions


def set_chat_favorite(user_id: str, persona_id: str, is_favorite: bool) -> ChatSession | None:
    path = _chat_path(user_id, persona_id)
    with _write_lock:
        if not path.is_file():
            return None
        session, messages = _read(path)
        session = session.model_copy(update={"is_favorite": is_favorite, "updated_at": utcnow()})
        _write(path, session, messages)
    return session


def delete_chat(user_id: str, persona_id: str) -> bool:
    path = _chat_path(user_id, persona_id)
    if not path.is_file():
        return False
    path.unlink()
    return True


def delete_persona_chats(persona_id: str) -> int:
    """Remove every user's chat with a persona. Returns how many were removed."""
    check_key(persona_id, "persona id")
    removed = 0
    for path in chats_dir().glob(f"*/{persona_id}.json"):
        path.unlink()
        removed += 1
    return removed


def count_chatters_by_persona() -> dict[str, int]:
    """persona_id → number of users who have a chat with it."""
    counts: dict[str, int] = {}
    for path in chats_dir().glob("*/*.json"):
        counts[path.stem] = counts.get(path.stem, 0) + 1
    return counts


# ── Messages ─────────────────────────────────────────────


def get_chat_messages(user_id: str, persona_id: str, limit: int | None = 50) -> list[ChatMessage]:
    """The most recent `limit` messages, oldest first. [] when there is no chat."""
    chat = get_chat(user_id, persona_id)
    if chat is None:
        return []
    messages = chat[1]
    if limit is not None:
        messages = messages[-limit:] if limit > 0 else []
    return messages


def record_exchange(
    user_id: str,
    persona_id: str,
    user_text: str,
    reply_text: str,
    *,
    now: datetime | None = None,
) -> ChatReply:
    """Append a user message and the persona's reply, and count today toward the streak."""
    now = now or utcnow()
    path = _chat_path(user_id, persona_id)
    with _write_lock:
        if not path.is_file():
            raise NotFoundError(f"No chat with persona {persona_id!r}")
        session, messages = _read(path)
        sent = _message("user", user_text, now)
        reply = _message("ai", reply_text, now)
        streak, update = advance_streak(session.streak, now.date())
        session = session.model_copy(update={
            "updated_at": now,
            "last_message_text": reply_text[:PREVIEW_LENGTH],
            "last_message_at": now,
            "streak": streak,
        })
        _write(path, session, [*messages, sent, reply])
    return ChatReply(user_message=sent, reply=reply, streak=update, session=session)
