"""Create a demo persona and stories for development/testing."""

import shutil

from companion_stories import storage

DEMO_PERSONA = {
    "name": "Meera",
    "description": "A bookish dreamer who hides her feelings behind teasing jokes.",
    "personality_snippet": "Playful, curious, secretly sentimental.",
    "base_prompt": "You are Meera, a warm and witty companion who loves old maps and monsoon rain.",
    "style_tags": ["playful", "romantic", "curious"],
    "default_voice_tone": "soft and teasing",
}

DEMO_STORIES = [
    {
        "title": "The Monsoon Map",
        "description": "An old map turns up in a second-hand bookshop, and Meera insists "
        "you follow it before the rains wash the ink away.",
        "tags": ["Adventure", "Romance", "Mystery"],
        "opening_situation": "Rain drums on the bookshop's tin roof. Meera slides a brittle, "
        "folded map across the counter and whispers that it was tucked inside a book "
        "nobody has borrowed in forty years.",
    },
    {
        "title": "Last Train to Shimla",
        "description": "Two strangers, one delayed train, and a night that changes everything.",
        "tags": ["Romance", "Travel"],
        "opening_situation": "The platform announcer apologises for the third time. Meera "
        "sits on her suitcase beside you, offering half of her chai.",
    },
]


def create_demo_data() -> None:
    """Wipe existing personas/stories/progress/chats and create fresh demo data."""
    dirs = (storage.personas_dir(), storage.stories_dir(), storage.progress_dir(), storage.chats_dir())
    for path in dirs:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True, exist_ok=True)

    persona = storage.create_persona(DEMO_PERSONA)
    for story in DEMO_STORIES:
        storage.create_story({
            **story,
            "protagonist_id": persona.id,
            "protagonist_name_snapshot": persona.name,
        })
