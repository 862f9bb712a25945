"""Tests for the story catalog."""

import re
from datetime import datetime, timedelta, timezone

from companion_stories import storage


def _story(title="The Monsoon Map", tags=None, created_at=None):
    fields = {
        "title": title,
        "protagonist_id": "meera",
        "opening_situation": "You find a mysterious map.",
        "tags": tags or [],
    }
    if created_at is not None:
        fields["created_at"] = created_at
    return storage.create_story(fields)


def test_new_story_id_format():
    story_id = storage.new_story_id("Monsoon Secrets!")
    assert re.fullmatch(r"monsoon_secrets_[0-9a-f]{6}", story_id)


def test_new_story_id_unique():
    assert storage.new_story_id("Same") != storage.new_story_id("Same")


def test_create_and_get_story():
    story = _story(tags=["Romance"])
    got = storage.get_story(story.id)
    assert got == story
    assert got.opening_situation == "You find a mysterious map."


def test_get_story_missing():
    assert storage.get_story("nope") is None


def test_list_stories_newest_first():
    now = datetime.now(timezone.utc)
    old = _story("Old", created_at=now - timedelta(days=2))
    new = _story("New", created_at=now)
    assert [s.id for s in storage.list_stories()] == [new.id, old.id]


def test_list_stories_tag_filter_case_insensitive():
    romance = _story("A", tags=["Romance", "Drama"])
    _story("B", tags=["Mystery"])
    assert [s.id for s in storage.list_stories("romance")] == [romance.id]


def test_delete_story():
    story = _story()
    assert storage.delete_story(story.id) is True
    assert storage.get_story(story.id) is None
    assert storage.delete_story(story.id) is False


def test_stories_for_persona():
    mine = _story()
    storage.create_story({
        "title": "Other", "protagonist_id": "riya", "opening_situation": "Elsewhere.",
    })
    assert [s.id for s in storage.stories_for_persona("meera")] == [mine.id]
