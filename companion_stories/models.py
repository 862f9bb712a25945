"""Core domain models.

Catalog, progress, narration and persona chat types. Pydantic is used for
validation and serialisation at every data boundary: storage files, HTTP
bodies and the Narration Provider's output.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Persona(BaseModel):
    """A companion character that can star in stories."""

    id: str
    name: str
    description: str = ""
    personality_snippet: str = ""
    base_prompt: str = ""
    style_tags: list[str] = Field(default_factory=list)
    default_voice_tone: str = ""
    avatar_url: str = ""
    is_premium: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Story(BaseModel):
    """An admin-authored interactive story. Never mutated by gameplay."""

    id: str
    title: str
    description: str = ""
    protagonist_id: str
    protagonist_name_snapshot: str = ""
    tags: list[str] = Field(default_factory=list)
    opening_situation: str
    cover_image_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class StoryIdea(BaseModel):
    """Draft story fields proposed by the story_idea role."""

    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    opening_situation: str

    @field_validator("title", "description", "opening_situation")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        if isinstance(value, str):
            return parse_tags(value)
        return value


def parse_tags(raw: str) -> list[str]:
    """Split a comma-separated tag string, dropping blanks.

    "Romance, Mystery, ,Drama" → ["Romance", "Mystery", "Drama"]
    """
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class TurnContext(BaseModel):
    """Where one player currently is inside a story."""

    situation_summary: str
    last_user_action: str
    choice_a: str | None = None
    choice_b: str | None = None

    @model_validator(mode="after")
    def _choices_paired(self) -> TurnContext:
        if not self.situation_summary.strip():
            raise ValueError("situation_summary must not be empty")
        if (self.choice_a is None) != (self.choice_b is None):
            raise ValueError("choice_a and choice_b must both be set or both be absent")
        return self


class TurnRecord(BaseModel):
    """One entry in a progress record's append-only history."""

    user_choice: str
    ai_narration: str
    offered_choice_a: str | None = None
    offered_choice_b: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class ProgressRecord(BaseModel):
    """Persisted state for one (user, story) pair."""

    user_id: str
    story_id: str
    current_context: TurnContext
    history: list[TurnRecord] = Field(default_factory=list)
    story_title_snapshot: str
    protagonist_id_snapshot: str
    last_played_at: datetime = Field(default_factory=utcnow)
    version: int = 0


# ---------------------------------------------------------------------------
# Narration Provider contract
# ---------------------------------------------------------------------------

class PersonaTraits(BaseModel):
    name: str
    style_tags: list[str] = Field(default_factory=list)
    voice_tone: str = ""


class NarrationRequest(BaseModel):
    """Everything the Narration Provider is told about a turn."""

    persona: PersonaTraits
    story_title: str
    player_name: str
    situation_before_action: str
    action_just_taken: str


class NarrationResult(BaseModel):
    """Validated provider output. All three fields are non-empty strings."""

    narration: str
    choice_a: str
    choice_b: str

    @field_validator("narration", "choice_a", "choice_b", mode="before")
    @classmethod
    def _non_empty_text(cls, value):
        if not isinstance(value, str):
            raise ValueError("must be a string")
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


class TurnResult(BaseModel):
    """What advance_turn hands back to the caller."""

    narration: str
    choice_a: str | None = None
    choice_b: str | None = None
    history: list[TurnRecord] = Field(default_factory=list)
    progress: ProgressRecord | None = None


# ---------------------------------------------------------------------------
# Persona chat
# ---------------------------------------------------------------------------

StreakStatus = Literal["first_ever", "continued", "maintained_same_day", "reset"]


class ChatStreak(BaseModel):
    """Consecutive calendar days (UTC) on which the user chatted with a persona."""

    current_streak: int = 0
    last_chat_date: date | None = None


class StreakUpdate(BaseModel):
    streak: int
    status: StreakStatus


class ChatMessage(BaseModel):
    id: str
    sender: Literal["user", "ai"]
    text: str
    timestamp: datetime = Field(default_factory=utcnow)


class ChatSession(BaseModel):
    """Summary of one user's 1:1 chat with a persona."""

    user_id: str
    persona_id: str
    persona_name: str
    persona_avatar_url: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_message_text: str = ""
    last_message_at: datetime | None = None
    is_favorite: bool = False
    streak: ChatStreak = Field(default_factory=ChatStreak)


class ChatReply(BaseModel):
    """What send_chat_message hands back: both stored messages + the streak."""

    user_message: ChatMessage
    reply: ChatMessage
    streak: StreakUpdate
    session: ChatSession


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

class AdminCredentials(BaseModel):
    """Explicit credentials passed to every administrative operation."""

    username: str
    password: str = ""
