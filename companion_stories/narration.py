"""Narration Provider boundary.

The turn engine talks to a NarrationProvider:

    async def __call__(self, request: NarrationRequest) -> object: ...

The return value is *untrusted*: the engine validates it against
NarrationResult before touching any state. LLMNarrator is the production
provider. It renders the narrator role's Handlebars prompt, calls the
configured LLM connection and hands back whatever JSON object the model
produced (or the raw text when the output isn't JSON).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from companion_stories.errors import GenerationError
from companion_stories.llm import LLM, LLMError, llm_for_role
from companion_stories.models import NarrationRequest
from companion_stories.prompts import PromptError, narration_context, render_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class NarrationProvider(Protocol):
    async def __call__(self, request: NarrationRequest) -> Any: ...


def parse_json_output(text: str) -> Any:
    """Best-effort decode of an LLM's JSON answer.

    Strips a surrounding ``` / ```json fence and, failing a clean parse,
    falls back to the outermost {...} span. Returns the original text when
    nothing decodes, so the caller's validation reports it.
    """
    stripped = text.strip()
    fenced = _FENCE_RE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass
    start, end = stripped.find("{"), stripped.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(stripped[start:end + 1])
        except json.JSONDecodeError:
            pass
    logger.warning("LLM output is not JSON: %r", text[:200])
    return text


class LLMNarrator:
    """Narration Provider backed by an LLM and the narrator prompt template."""

    def __init__(self, llm: LLM, prompt_template: str) -> None:
        self._llm = llm
        self._template = prompt_template

    async def __call__(self, request: NarrationRequest) -> Any:
        try:
            prompt = render_prompt(self._template, narration_context(request))
        except PromptError as e:
            raise GenerationError(f"Prompt template error (narrator): {e}") from e
        try:
            text = await self._llm("narrator", prompt)
        except LLMError as e:
            raise GenerationError(str(e)) from e
        return parse_json_output(text)


def narrator_from_config(config: dict[str, Any]) -> LLMNarrator:
    """Build the production narrator from config.json settings."""
    llm = llm_for_role(config, "narrator")
    if llm is None:
        raise GenerationError("Narrator role is not assigned; configure it in Settings")
    return LLMNarrator(llm, config["story_roles"]["narrator"]["prompt"])
