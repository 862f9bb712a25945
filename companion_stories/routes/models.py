"""Pydantic request models for API endpoints."""

from typing import Literal

from pydantic import BaseModel


class TurnBody(BaseModel):
    player_name: str
    message: str


class CreatePersona(BaseModel):
    name: str
    description: str = ""
    personality_snippet: str = ""
    base_prompt: str = ""
    style_tags: list[str] | str = []
    default_voice_tone: str = ""
    avatar_url: str = ""
    is_premium: bool = False


class UpdatePersona(BaseModel):
    name: str | None = None
    description: str | None = None
    personality_snippet: str | None = None
    base_prompt: str | None = None
    style_tags: list[str] | str | None = None
    default_voice_tone: str | None = None
    avatar_url: str | None = None
    is_premium: bool | None = None


class CreateStory(BaseModel):
    title: str
    protagonist_id: str
    opening_situation: str
    description: str = ""
    tags: list[str] | str = []
    cover_image_url: str | None = None


class ChatMessageBody(BaseModel):
    user_name: str
    message: str


class ChatFavoriteBody(BaseModel):
    is_favorite: bool


class StoryIdeaBody(BaseModel):
    persona_id: str


class AdminLogin(BaseModel):
    username: str
    password: str


class CheckConnectionBody(BaseModel):
    provider_url: str
    api_key: str = ""
    provider_format: str = "koboldcpp"


class LLMConnection(BaseModel):
    name: str
    provider_url: str
    api_key: str = ""
    provider_format: Literal["koboldcpp", "openai"] = "koboldcpp"
    model: str = ""


class StoryRoleUpdate(BaseModel):
    connection: str | None = None
    prompt: str | None = None


class UpdateSettings(BaseModel):
    llm_connections: list[LLMConnection] | None = None
    story_roles: dict[str, StoryRoleUpdate] | None = None
