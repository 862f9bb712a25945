"""File-based JSON storage.

Data layout:
  data/
    personas/<id>.json                 Companion personas (admin-authored)
    stories/<id>.json                  Interactive stories (write-once)
    progress/<user_id>/<story_id>.json Per-player progress: current context
                                       + append-only turn history
    chats/<user_id>/<persona_id>.json  Persona chat: session, streak and
                                       message log
    config.json                        LLM connections + story roles
    admin.json                         Admin credentials (seeded from env)

Every write goes through write_json_atomic() (temp file + rename), so a
reader sees either the old file or the new one, never a mix.

Config: get_config() returns defaults merged with stored values.
update_config() replaces llm_connections wholesale and merges story_roles
role by role.
"""

# Re-export all public symbols so `from companion_stories import storage` keeps working.

from .core import (  # noqa: F401
    chats_dir,
    check_key,
    data_dir,
    init_storage,
    personas_dir,
    progress_dir,
    slugify,
    stories_dir,
    write_json_atomic,
)

from .personas import (  # noqa: F401
    create_persona,
    delete_persona,
    get_persona,
    list_personas,
    update_persona,
)

from .stories import (  # noqa: F401
    create_story,
    delete_story,
    get_story,
    list_stories,
    new_story_id,
    stories_for_persona,
)

from .progress import (  # noqa: F401
    apply_turn,
    count_players_by_story,
    delete_progress,
    delete_story_progress,
    get_progress,
    list_progress,
)

from .chats import (  # noqa: F401
    advance_streak,
    count_chatters_by_persona,
    delete_chat,
    delete_persona_chats,
    get_chat,
    get_chat_messages,
    get_chat_session,
    get_or_create_chat_session,
    list_chat_sessions,
    record_exchange,
    set_chat_favorite,
)

from .config import (  # noqa: F401
    DEFAULT_CHAT_PROMPT,
    DEFAULT_NARRATOR_PROMPT,
    DEFAULT_STORY_IDEA_PROMPT,
    DEFAULT_STORY_ROLES,
    get_admin_credentials,
    get_config,
    resolve_connection,
    seed_admin_credentials_if_needed,
    set_admin_credentials,
    update_config,
)
