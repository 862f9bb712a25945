"""Global app configuration (LLM connections, story roles) and admin credentials."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from companion_stories.models import AdminCredentials

from .core import data_dir, read_json, write_json_atomic

logger = logging.getLogger(__name__)

DEFAULT_NARRATOR_PROMPT = """\
You are {{{persona.name}}}, a warm and expressive companion. Your personality \
is shaped by these style tags: {{{persona.style_tags_text}}}, and your voice \
tone is "{{{persona.voice_tone}}}".
You are playing an interactive story titled "{{{story_title}}}" with a user \
named {{{player_name}}}.

## The Story So Far
{{{situation_before_action}}}

## What {{{player_name}}} Just Said or Did
"{{{action_just_taken}}}"

Continue the story from the situation above, responding to {{{player_name}}}'s \
action in an immersive, emotional tone. Then offer exactly two short options \
for what {{{player_name}}} could do next.

Respond ONLY with a JSON object of this exact shape:
{"narration": "<the next story beat>", "choice_a": "<first option>", "choice_b": "<second option>"}\
"""

DEFAULT_STORY_IDEA_PROMPT = """\
You are a creative writer for a companion story app. Create a unique, \
emotionally engaging story premise starring this character.

## Protagonist
Name: {{{persona.name}}}
Personality: {{{persona.personality}}}

Respond ONLY with a JSON object of this exact shape:
{"title": "<catchy title>", "description": "<2-3 sentence summary>", \
"tags": "<3-5 comma-separated tags>", \
"opening_situation": "<2-4 sentence opening scene that invites the user to act>"}\
"""

DEFAULT_CHAT_PROMPT = """\
You are {{{persona.name}}}, a virtual companion chatting one-on-one with \
{{{user_name}}}. Stay in character at all times.

## Who You Are
{{{persona.base_prompt}}}
{{#if persona.personality_snippet}}
In short: {{{persona.personality_snippet}}}
{{/if}}
Style:
{{#each persona.style_tags}}
- {{{this}}}
{{/each}}
Voice tone: {{{persona.voice_tone}}}

## Recent Conversation
{{{previous_messages}}}

## {{{user_name}}} Just Said
"{{{user_message}}}"

Reply as {{{persona.name}}} in a warm, playful and emotionally engaging way. \
Ask about {{{user_name}}}, react to what they said, and keep it conversational.
Respond ONLY with your chat message, without your name as a prefix.\
"""

DEFAULT_STORY_ROLES: dict[str, dict[str, str]] = {
    "narrator": {"connection": "", "prompt": DEFAULT_NARRATOR_PROMPT},
    "story_idea": {"connection": "", "prompt": DEFAULT_STORY_IDEA_PROMPT},
    "chat": {"connection": "", "prompt": DEFAULT_CHAT_PROMPT},
}

_CONFIG_DEFAULTS: dict[str, Any] = {
    "llm_connections": [],
    "story_roles": DEFAULT_STORY_ROLES,
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def _admin_path() -> Path:
    return data_dir() / "admin.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values.

    An empty stored prompt falls back to the built-in default for that role.
    """
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path()
    if path.is_file():
        stored = read_json(path)
        if "llm_connections" in stored:
            config["llm_connections"] = stored["llm_connections"]
        for role_name, role in stored.get("story_roles", {}).items():
            if role_name not in config["story_roles"] or not isinstance(role, dict):
                continue
            if role.get("connection"):
                config["story_roles"][role_name]["connection"] = role["connection"]
            if role.get("prompt"):
                config["story_roles"][role_name]["prompt"] = role["prompt"]
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config.

    llm_connections is replaced wholesale; story_roles merge role by role.
    """
    config = get_config()
    if "llm_connections" in fields:
        config["llm_connections"] = fields["llm_connections"]
    for role_name, role in fields.get("story_roles", {}).items():
        if role_name in config["story_roles"] and isinstance(role, dict):
            config["story_roles"][role_name].update(
                {k: v for k, v in role.items() if k in ("connection", "prompt")}
            )
    write_json_atomic(_config_path(), config)
    return get_config()


def resolve_connection(config: dict[str, Any], role_name: str) -> dict[str, Any] | None:
    """Find the LLM connection assigned to a story role, or None."""
    conn_name = config.get("story_roles", {}).get(role_name, {}).get("connection", "")
    if not conn_name:
        return None
    for conn in config.get("llm_connections", []):
        if conn.get("name") == conn_name:
            return conn
    return None


# ── Admin credentials ────────────────────────────────────


def get_admin_credentials() -> AdminCredentials | None:
    path = _admin_path()
    if not path.is_file():
        return None
    return AdminCredentials.model_validate(read_json(path))


def seed_admin_credentials_if_needed() -> None:
    """Store ADMIN_USERNAME / ADMIN_PASSWORD from the environment on first run."""
    if _admin_path().is_file():
        return
    username = os.getenv("ADMIN_USERNAME", "")
    password = os.getenv("ADMIN_PASSWORD", "")
    if not username or not password:
        logger.warning("No admin credentials stored and ADMIN_USERNAME/ADMIN_PASSWORD unset; admin API disabled")
        return
    write_json_atomic(_admin_path(), {"username": username, "password": password})
    logger.info("Seeded admin credentials for user=%s", username)


def set_admin_credentials(credentials: AdminCredentials) -> None:
    write_json_atomic(_admin_path(), credentials.model_dump())
