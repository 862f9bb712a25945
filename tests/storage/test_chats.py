"""Tests for persona chat storage: sessions, messages, streaks, cleanup."""

from datetime import date, datetime, timedelta, timezone

import pytest

from companion_stories import storage
from companion_stories.errors import NotFoundError, PersistenceError
from companion_stories.models import ChatStreak

DAY1 = datetime(2026, 3, 1, 21, 30, tzinfo=timezone.utc)


@pytest.fixture
def meera():
    return storage.create_persona({"name": "Meera", "avatar_url": "/a/meera.png"})


def _start(persona, user_id="u1"):
    session, _ = storage.get_or_create_chat_session(user_id, persona, f"Hi, I'm {persona.name}.")
    return session


# ── Streaks ──────────────────────────────────────────────


@pytest.mark.parametrize("last, count, expected", [
    (None, 0, (1, "first_ever")),
    (date(2026, 3, 1), 4, (4, "maintained_same_day")),
    (date(2026, 2, 28), 4, (5, "continued")),
    (date(2026, 2, 20), 4, (1, "reset")),
])
def test_advance_streak(last, count, expected):
    streak, update = storage.advance_streak(
        ChatStreak(current_streak=count, last_chat_date=last), date(2026, 3, 1),
    )
    assert (update.streak, update.status) == expected
    assert streak.current_streak == expected[0]
    assert streak.last_chat_date == date(2026, 3, 1)


def test_advance_streak_across_month_end():
    _, update = storage.advance_streak(
        ChatStreak(current_streak=2, last_chat_date=date(2026, 2, 28)), date(2026, 3, 1),
    )
    assert update.status == "continued"


# ── Sessions ─────────────────────────────────────────────


def test_new_session_stores_greeting(meera):
    session, created = storage.get_or_create_chat_session("u1", meera, "Hi, I'm Meera.")
    assert created
    assert session.persona_name == "Meera"
    assert session.persona_avatar_url == "/a/meera.png"
    assert session.last_message_text == "Hi, I'm Meera."

    messages = storage.get_chat_messages("u1", meera.id)
    assert [(m.sender, m.text) for m in messages] == [("ai", "Hi, I'm Meera.")]


def test_existing_session_is_reused(meera):
    first = _start(meera)
    again, created = storage.get_or_create_chat_session("u1", meera, "A different greeting")
    assert not created
    assert again == first
    assert len(storage.get_chat_messages("u1", meera.id)) == 1


def test_list_sessions_favourites_first(meera):
    riya = storage.create_persona({"name": "Riya"})
    zoya = storage.create_persona({"name": "Zoya"})
    for persona in (meera, riya, zoya):
        _start(persona)
    storage.record_exchange("u1", zoya.id, "hey", "hello")
    storage.set_chat_favorite("u1", meera.id, True)

    order = [s.persona_id for s in storage.list_chat_sessions("u1")]
    assert order[0] == meera.id
    assert order[1] == zoya.id


def test_list_sessions_unknown_user():
    assert storage.list_chat_sessions("nobody") == []


def test_set_favorite_missing_chat(meera):
    assert storage.set_chat_favorite("u1", meera.id, True) is None


def test_delete_chat(meera):
    _start(meera)
    assert storage.delete_chat("u1", meera.id) is True
    assert storage.get_chat_session("u1", meera.id) is None
    assert storage.delete_chat("u1", meera.id) is False


def test_delete_persona_chats_and_counts(meera):
    riya = storage.create_persona({"name": "Riya"})
    _start(meera, "u1")
    _start(meera, "u2")
    _start(riya, "u1")
    assert storage.count_chatters_by_persona() == {meera.id: 2, riya.id: 1}

    assert storage.delete_persona_chats(meera.id) == 2
    assert storage.count_chatters_by_persona() == {riya.id: 1}


# ── Messages ─────────────────────────────────────────────


def test_record_exchange_appends_both_messages(meera):
    _start(meera)
    reply = storage.record_exchange("u1", meera.id, "How was your day?", "Rainy and lovely!", now=DAY1)

    assert reply.user_message.sender == "user"
    assert reply.reply.text == "Rainy and lovely!"
    assert (reply.streak.streak, reply.streak.status) == (1, "first_ever")

    messages = storage.get_chat_messages("u1", meera.id)
    assert [m.text for m in messages] == ["Hi, I'm Meera.", "How was your day?", "Rainy and lovely!"]
    assert len({m.id for m in messages}) == 3

    session = storage.get_chat_session("u1", meera.id)
    assert session.last_message_text == "Rainy and lovely!"
    assert session.last_message_at == DAY1
    assert session.streak.last_chat_date == DAY1.date()


def test_record_exchange_streak_over_days(meera):
    _start(meera)
    statuses = []
    for now in (DAY1, DAY1 + timedelta(hours=1), DAY1 + timedelta(days=1), DAY1 + timedelta(days=5)):
        statuses.append(storage.record_exchange("u1", meera.id, "hi", "hey", now=now).streak)
    assert [(s.streak, s.status) for s in statuses] == [
        (1, "first_ever"), (1, "maintained_same_day"), (2, "continued"), (1, "reset"),
    ]


def test_record_exchange_truncates_preview(meera):
    _start(meera)
    storage.record_exchange("u1", meera.id, "tell me a story", "x" * 250)
    assert len(storage.get_chat_session("u1", meera.id).last_message_text) == storage.chats.PREVIEW_LENGTH


def test_record_exchange_without_chat(meera):
    with pytest.raises(NotFoundError):
        storage.record_exchange("u1", meera.id, "hi", "hey")


def test_get_chat_messages_limit(meera):
    _start(meera)
    for i in range(3):
        storage.record_exchange("u1", meera.id, f"q{i}", f"a{i}")
    assert [m.text for m in storage.get_chat_messages("u1", meera.id, limit=2)] == ["q2", "a2"]
    assert storage.get_chat_messages("u1", meera.id, limit=0) == []
    assert len(storage.get_chat_messages("u1", meera.id, limit=None)) == 7


def test_get_chat_messages_without_chat():
    assert storage.get_chat_messages("u1", "meera") == []


def test_unreadable_chat_file():
    path = storage.chats_dir() / "u1" / "meera.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"session": {"user_id": "u1"')
    with pytest.raises(PersistenceError, match="meera.json"):
        storage.get_chat_session("u1", "meera")
