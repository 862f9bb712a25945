"""Persona CRUD. One JSON file per persona under data/personas/."""

from pathlib import Path
from typing import Any

from companion_stories.models import Persona

from .core import check_key, personas_dir, read_json, slugify, write_json_atomic


def _persona_path(persona_id: str) -> Path:
    return personas_dir() / f"{check_key(persona_id, 'persona id')}.json"


def list_personas() -> list[Persona]:
    results = [Persona.model_validate(read_json(p)) for p in personas_dir().glob("*.json")]
    results.sort(key=lambda p: p.name.lower())
    return results


def get_persona(persona_id: str) -> Persona | None:
    path = _persona_path(persona_id)
    if not path.is_file():
        return None
    return Persona.model_validate(read_json(path))


def create_persona(fields: dict[str, Any]) -> Persona:
    """Create a persona; the id is the slugified name, suffixed on collision."""
    base_id = slugify(fields["name"])
    persona_id = base_id
    counter = 2
    while (personas_dir() / f"{persona_id}.json").exists():
        persona_id = f"{base_id}-{counter}"
        counter += 1
    persona = Persona.model_validate({**fields, "id": persona_id})
    write_json_atomic(_persona_path(persona_id), persona.model_dump(mode="json"))
    return persona


def update_persona(persona_id: str, fields: dict[str, Any]) -> Persona | None:
    """Overwrite mutable persona fields. Returns the updated persona."""
    persona = get_persona(persona_id)
    if persona is None:
        return None
    fields = {k: v for k, v in fields.items() if k not in ("id", "created_at")}
    updated = persona.model_copy(update=fields)
    updated = Persona.model_validate(updated.model_dump())
    write_json_atomic(_persona_path(persona_id), updated.model_dump(mode="json"))
    return updated


def delete_persona(persona_id: str) -> bool:
    path = _persona_path(persona_id)
    if not path.is_file():
        return False
    path.unlink()
    return True
