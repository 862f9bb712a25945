"""Storage initialization, path helpers, key checks and atomic JSON writes."""

import json
import logging
import os
import re
import tempfile
import unicodedata
from pathlib import Path
from typing import Any

from companion_stories.errors import InvalidRequestError, PersistenceError

logger = logging.getLogger(__name__)

_data_dir: Path | None = None

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


def slugify(title: str) -> str:
    """Convert a title to a filesystem-safe slug.

    "Meera's Monsoon" → "meeras-monsoon"
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"['\"]", "", text)  # strip apostrophes/quotes before hyphenation
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    return text or "untitled"


def check_key(value: str, what: str = "id") -> str:
    """Reject ids that are not a single safe path component."""
    if not value or not _KEY_RE.match(value) or len(value) > 128:
        raise InvalidRequestError(f"Invalid {what}: {value!r}")
    return value


def init_storage(data_dir: Path) -> None:
    global _data_dir
    from .config import seed_admin_credentials_if_needed

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    personas_dir().mkdir(exist_ok=True)
    stories_dir().mkdir(exist_ok=True)
    progress_dir().mkdir(exist_ok=True)
    chats_dir().mkdir(exist_ok=True)
    seed_admin_credentials_if_needed()


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def personas_dir() -> Path:
    return data_dir() / "personas"


def stories_dir() -> Path:
    return data_dir() / "stories"


def progress_dir() -> Path:
    return data_dir() / "progress"


def chats_dir() -> Path:
    return data_dir() / "chats"


def read_json(path: Path) -> Any:
    return json.loads(path.read_text())


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON via a temp file + rename so readers never see half a file."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        logger.error("write failed path=%s error=%s", path, e)
        raise PersistenceError(f"Could not write {path.name}: {e}") from e
    try:
        with os.fdopen(fd, "w") as fh:
            fh.write(json.dumps(data, indent=2))
        os.replace(tmp_name, path)
    except OSError as e:
        logger.error("write failed path=%s error=%s", path, e)
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise PersistenceError(f"Could not write {path.name}: {e}") from e
