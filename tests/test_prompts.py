"""Tests for Handlebars prompt rendering and the role context builders."""

import pytest

from companion_stories import storage
from companion_stories.models import NarrationRequest, Persona, PersonaTraits
from companion_stories.prompts import (
    PromptError,
    narration_context,
    render_prompt,
    story_idea_context,
)


def _request() -> NarrationRequest:
    return NarrationRequest(
        persona=PersonaTraits(name="Meera", style_tags=["playful", "romantic"], voice_tone="soft"),
        story_title="The Monsoon Map",
        player_name="Sam",
        situation_before_action="You find a mysterious map.",
        action_just_taken="begin",
    )


# ── render_prompt ────────────────────────────────────────────


def test_render_simple_variable():
    assert render_prompt("Hello {{name}}!", {"name": "World"}) == "Hello World!"


def test_render_triple_stash_does_not_escape():
    assert render_prompt('Said "{{{text}}}"', {"text": 'a "quote" & more'}) == 'Said "a "quote" & more"'


def test_render_join_helper():
    assert render_prompt('{{join tags ", "}}', {"tags": ["a", "b"]}) == "a, b"


def test_render_missing_variable():
    assert render_prompt("Hello {{name}}!", {}) == "Hello !"


def test_render_invalid_template():
    with pytest.raises(PromptError):
        render_prompt("{{> missing_partial}}", {})


# ── context builders ─────────────────────────────────────────


def test_narration_context_fields():
    ctx = narration_context(_request())
    assert ctx["persona"]["name"] == "Meera"
    assert ctx["persona"]["style_tags_text"] == "playful, romantic"
    assert ctx["situation_before_action"] == "You find a mysterious map."
    assert ctx["action_just_taken"] == "begin"


def test_default_narrator_prompt_renders_request():
    prompt = render_prompt(storage.DEFAULT_NARRATOR_PROMPT, narration_context(_request()))
    assert "You are Meera" in prompt
    assert "playful, romantic" in prompt
    assert '"The Monsoon Map"' in prompt
    assert "You find a mysterious map." in prompt
    assert '"begin"' in prompt
    assert '"choice_a"' in prompt


def test_default_story_idea_prompt_renders_persona():
    persona = Persona(
        id="meera", name="Meera", personality_snippet="Curious.",
        base_prompt="Loves maps.", style_tags=["playful"],
    )
    prompt = render_prompt(storage.DEFAULT_STORY_IDEA_PROMPT, story_idea_context(persona))
    assert "Name: Meera" in prompt
    assert "Personality Snippet: Curious." in prompt
    assert "Style Tags: playful." in prompt
    assert '"opening_situation"' in prompt
