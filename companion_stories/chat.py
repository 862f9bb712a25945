"""One-on-one chat with a companion persona.

open_chat() starts (or resumes) a user's chat with a persona; the first
contact stores the persona's greeting. send_chat_message() renders the
chat role's prompt from the persona and the recent log, asks the LLM for
a reply, then stores the user's message, the reply and the day's streak
in one write. Nothing is stored when the LLM fails or answers with
nothing.
"""

import logging

from companion_stories import storage
from companion_stories.errors import GenerationError, InvalidRequestError, NotFoundError
from companion_stories.llm import LLM, LLMError
from companion_stories.locks import KeyedLocks
from companion_stories.models import ChatReply, ChatSession, Persona
from companion_stories.prompts import PromptError, chat_context, render_prompt

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20

_chat_locks = KeyedLocks()


def greeting_for(persona: Persona) -> str:
    parts = [f"Hi! I'm {persona.name}."]
    if persona.personality_snippet.strip():
        parts.append(persona.personality_snippet.strip())
    parts.append("So, what do you want to talk about?")
    return " ".join(parts)


def _require_persona(persona_id: str) -> Persona:
    persona = storage.get_persona(persona_id)
    if persona is None:
        raise NotFoundError(f"Persona {persona_id!r} not found")
    return persona


def open_chat(user_id: str, persona_id: str) -> ChatSession:
    """Return the user's chat session with a persona, starting it if needed."""
    storage.check_key(user_id, "user id")
    persona = _require_persona(persona_id)
    session, _ = storage.get_or_create_chat_session(user_id, persona, greeting_for(persona))
    return session


async def send_chat_message(
    user_id: str,
    persona_id: str,
    user_name: str,
    text: str,
    *,
    llm: LLM,
    prompt_template: str,
) -> ChatReply:
    """Send one message to a persona and store it with the persona's reply."""
    if not text.strip():
        raise InvalidRequestError("Message cannot be empty")
    storage.check_key(user_id, "user id")
    storage.check_key(persona_id, "persona id")

    async with _chat_locks.hold((user_id, persona_id)):
        persona = _require_persona(persona_id)
        storage.get_or_create_chat_session(user_id, persona, greeting_for(persona))
        history = storage.get_chat_messages(user_id, persona_id, limit=HISTORY_LIMIT)

        try:
            prompt = render_prompt(prompt_template, chat_context(persona, user_name, text, history))
        except PromptError as e:
            raise GenerationError(f"Prompt template error (chat): {e}") from e
        try:
            reply = (await llm("chat", prompt)).strip()
        except LLMError as e:
            raise GenerationError(str(e)) from e
        if not reply:
            logger.warning("empty chat reply user=%s persona=%s", user_id, persona_id)
            raise GenerationError("Failed to get a text response from AI. Please try again.")

        result = storage.record_exchange(user_id, persona_id, text, reply)
    logger.info(
        "chat message user=%s persona=%s streak=%d (%s)",
        user_id, persona_id, result.streak.streak, result.streak.status,
    )
    return result
