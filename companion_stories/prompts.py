"""Handlebars prompt rendering for story roles."""

from collections.abc import Callable
from typing import Any

import pybars

from companion_stories.models import ChatMessage, NarrationRequest, Persona


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def _helper_join(this, items, separator=", "):
    """{{join array ", "}}: join a list of strings."""
    return separator.join(str(item) for item in items or [])


_HELPERS: dict[str, Callable] = {
    "join": _helper_join,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def narration_context(request: NarrationRequest) -> dict[str, Any]:
    """Template variables for the narrator role.

    Mirrors the request fields, plus persona.style_tags_text pre-joined for
    templates that don't want to loop.
    """
    ctx = request.model_dump()
    ctx["persona"]["style_tags_text"] = ", ".join(request.persona.style_tags)
    return ctx


def story_idea_context(persona: Persona) -> dict[str, Any]:
    """Template variables for the story_idea role."""
    personality = (
        f"Personality Snippet: {persona.personality_snippet}. "
        f"Base Prompt: {persona.base_prompt}. "
        f"Style Tags: {', '.join(persona.style_tags)}."
    )
    return {
        "persona": {
            "name": persona.name,
            "description": persona.description,
            "style_tags": persona.style_tags,
            "personality": personality,
        },
    }


def chat_context(
    persona: Persona, user_name: str, user_message: str, history: list[ChatMessage]
) -> dict[str, Any]:
    """Template variables for the chat role.

    previous_messages is the recent log as "<speaker>: <text>" lines.
    """
    lines = [
        f"{user_name if m.sender == 'user' else persona.name}: {m.text}" for m in history
    ]
    return {
        "persona": {
            "name": persona.name,
            "base_prompt": persona.base_prompt,
            "personality_snippet": persona.personality_snippet,
            "style_tags": persona.style_tags,
            "voice_tone": persona.default_voice_tone,
        },
        "user_name": user_name,
        "user_message": user_message,
        "previous_messages": "\n".join(lines),
    }
