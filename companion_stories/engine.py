"""Story turn engine.

advance_turn() moves one player's story forward by exactly one beat:

  1. Fetch the story and its protagonist persona (fresh on every call).
  2. Load the player's progress record, if any.
  3. Situation before this action = the last accepted narration, or the
     story's opening situation when the player has no progress yet.
  4. Ask the Narration Provider for the next beat + two choices.
  5. Validate the answer (narration, choice_a, choice_b all non-empty text).
  6. Commit the new context and one history entry in a single store write.

Nothing is written unless step 5 passes. A per-(user, story) asyncio lock,
dropped once idle, keeps overlapping calls from interleaving inside one
process, and the store's version check rejects a write whose prior state
changed underneath it.

Blank input is a no-op: the current context comes back unchanged and the
provider is not called. Stories have no ending; a player can keep going
until they stop.
"""

import logging

from pydantic import ValidationError

from companion_stories import storage
from companion_stories.errors import GenerationError, NotFoundError
from companion_stories.locks import KeyedLocks
from companion_stories.models import (
    NarrationRequest,
    NarrationResult,
    PersonaTraits,
    TurnContext,
    TurnRecord,
    TurnResult,
    utcnow,
)
from companion_stories.narration import NarrationProvider

logger = logging.getLogger(__name__)

_turn_locks = KeyedLocks()


def validate_narration(raw: object) -> NarrationResult:
    """Parse provider output into a NarrationResult or raise GenerationError."""
    if raw is None:
        raise GenerationError("Narration provider returned no result")
    if not isinstance(raw, dict):
        raise GenerationError(
            f"Narration provider returned {type(raw).__name__}, expected an object"
        )
    try:
        return NarrationResult.model_validate(raw)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise GenerationError(f"Incomplete story response from AI ({fields}); please try again") from e


async def advance_turn(
    user_id: str,
    story_id: str,
    player_name: str,
    user_input: str,
    *,
    narrator: NarrationProvider,
) -> TurnResult:
    """Advance (or start) a story by one beat. See module docstring."""
    storage.check_key(user_id, "user id")
    storage.check_key(story_id, "story id")
    async with _turn_locks.hold((user_id, story_id)):
        return await _advance_locked(user_id, story_id, player_name, user_input, narrator)


async def _advance_locked(
    user_id: str,
    story_id: str,
    player_name: str,
    user_input: str,
    narrator: NarrationProvider,
) -> TurnResult:
    story = storage.get_story(story_id)
    if story is None:
        raise NotFoundError(f"Story {story_id!r} not found")

    progress = storage.get_progress(user_id, story_id)

    if not user_input.strip():
        if progress is None:
            return TurnResult(narration=story.opening_situation)
        ctx = progress.current_context
        return TurnResult(
            narration=ctx.situation_summary,
            choice_a=ctx.choice_a,
            choice_b=ctx.choice_b,
            history=progress.history,
            progress=progress,
        )

    persona = storage.get_persona(story.protagonist_id)
    if persona is None:
        raise NotFoundError(
            f"Protagonist {story.protagonist_id!r} for story {story_id!r} not found"
        )

    if progress is not None:
        situation = progress.current_context.situation_summary
        expected_version = progress.version
    else:
        situation = story.opening_situation
        expected_version = 0

    request = NarrationRequest(
        persona=PersonaTraits(
            name=persona.name,
            style_tags=persona.style_tags,
            voice_tone=persona.default_voice_tone,
        ),
        story_title=story.title,
        player_name=player_name,
        situation_before_action=situation,
        action_just_taken=user_input,
    )

    raw = await narrator(request)
    try:
        result = validate_narration(raw)
    except GenerationError:
        logger.warning(
            "rejected narration user=%s story=%s output=%r", user_id, story_id, raw,
        )
        raise

    context = TurnContext(
        situation_summary=result.narration,
        last_user_action=user_input,
        choice_a=result.choice_a,
        choice_b=result.choice_b,
    )
    record = TurnRecord(
        user_choice=user_input,
        ai_narration=result.narration,
        offered_choice_a=result.choice_a,
        offered_choice_b=result.choice_b,
        timestamp=utcnow(),
    )
    updated = storage.apply_turn(
        user_id, story_id, context, record,
        story_title=story.title,
        protagonist_id=story.protagonist_id,
        expected_version=expected_version,
    )
    logger.info(
        "turn committed user=%s story=%s turns=%d", user_id, story_id, len(updated.history),
    )
    return TurnResult(
        narration=result.narration,
        choice_a=result.choice_a,
        choice_b=result.choice_b,
        history=updated.history,
        progress=updated,
    )
