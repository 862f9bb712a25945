"""Per (user, story) progress records.

Each record is a single JSON file, data/progress/<user_id>/<story_id>.json,
holding the current turn context and the full turn history. apply_turn()
rewrites the whole file with one atomic rename, so the context and the
history always move together.
"""

import logging
import threading
from pathlib import Path

from companion_stories.errors import PersistenceError, VersionConflictError
from companion_stories.models import ProgressRecord, TurnContext, TurnRecord

from .core import check_key, progress_dir, read_json, write_json_atomic

logger = logging.getLogger(__name__)

# Serialises the read-check-write in apply_turn within this process.
_write_lock = threading.Lock()


def _user_dir(user_id: str) -> Path:
    return progress_dir() / check_key(user_id, "user id")


def _progress_path(user_id: str, story_id: str) -> Path:
    return _user_dir(user_id) / f"{check_key(story_id, 'story id')}.json"


def _read(path: Path) -> ProgressRecord:
    # ValueError covers truncated JSON and records that fail validation
    try:
        return ProgressRecord.model_validate(read_json(path))
    except (OSError, ValueError) as e:
        logger.error("unreadable progress file %s: %s", path, e)
        raise PersistenceError(f"Could not read progress {path.name}: {e}") from e


def _load(path: Path) -> ProgressRecord | None:
    if not path.is_file():
        return None
    return _read(path)


def get_progress(user_id: str, story_id: str) -> ProgressRecord | None:
    return _load(_progress_path(user_id, story_id))


def list_progress(user_id: str) -> list[ProgressRecord]:
    """All of a user's records, most recently played first."""
    user_dir = _user_dir(user_id)
    if not user_dir.is_dir():
        return []
    records = [_read(p) for p in user_dir.glob("*.json")]
    records.sort(key=lambda r: r.last_played_at, reverse=True)
    return records


def apply_turn(
    user_id: str,
    story_id: str,
    context: TurnContext,
    record: TurnRecord,
    *,
    story_title: str,
    protagonist_id: str,
    expected_version: int,
) -> ProgressRecord:
    """Replace the current context and append one history entry in one write.

    `expected_version` is the version the caller read before generating the
    turn (0 when no record existed). A mismatch means another turn landed in
    between and raises VersionConflictError without writing anything.
    Snapshots are only taken when the record is first created.
    """
    path = _progress_path(user_id, story_id)
    with _write_lock:
        existing = _load(path)
        current_version = existing.version if existing else 0
        if current_version != expected_version:
            logger.warning(
                "progress version conflict user=%s story=%s expected=%d found=%d",
                user_id, story_id, expected_version, current_version,
            )
            raise VersionConflictError(
                f"Progress for story {story_id!r} changed during this turn; please resubmit"
            )

        if existing is None:
            updated = ProgressRecord(
                user_id=user_id,
                story_id=story_id,
                current_context=context,
                history=[record],
                story_title_snapshot=story_title,
                protagonist_id_snapshot=protagonist_id,
                last_played_at=record.timestamp,
                version=1,
            )
        else:
            updated = existing.model_copy(update={
                "current_context": context,
                "history": [*existing.history, record],
                "last_played_at": record.timestamp,
                "version": existing.version + 1,
            })

        write_json_atomic(path, updated.model_dump(mode="json"))
    return updated


def delete_progress(user_id: str, story_id: str) -> bool:
    path = _progress_path(user_id, story_id)
    if not path.is_file():
        return False
    path.unlink()
    return True


def delete_story_progress(story_id: str) -> int:
    """Remove every user's progress for a story. Returns how many were removed."""
    check_key(story_id, "story id")
    removed = 0
    for path in progress_dir().glob(f"*/{story_id}.json"):
        path.unlink()
        removed += 1
    return removed


def count_players_by_story() -> dict[str, int]:
    """story_id → number of users with a progress record for it."""
    counts: dict[str, int] = {}
    for path in progress_dir().glob("*/*.json"):
        counts[path.stem] = counts.get(path.stem, 0) + 1
    return counts