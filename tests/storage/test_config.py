"""Tests for config merging, connection resolution and admin credentials."""

from companion_stories import storage
from companion_stories.models import AdminCredentials


def test_get_config_defaults():
    config = storage.get_config()
    assert config["llm_connections"] == []
    assert config["story_roles"]["narrator"]["connection"] == ""
    assert config["story_roles"]["narrator"]["prompt"] == storage.DEFAULT_NARRATOR_PROMPT
    assert config["story_roles"]["story_idea"]["prompt"] == storage.DEFAULT_STORY_IDEA_PROMPT
    assert config["story_roles"]["chat"]["prompt"] == storage.DEFAULT_CHAT_PROMPT


def test_get_config_does_not_leak_mutations():
    storage.get_config()["story_roles"]["narrator"]["prompt"] = "changed"
    assert storage.get_config()["story_roles"]["narrator"]["prompt"] == storage.DEFAULT_NARRATOR_PROMPT


def test_update_config_replaces_connections():
    storage.update_config({"llm_connections": [{"name": "a", "provider_url": "http://a"}]})
    storage.update_config({"llm_connections": [{"name": "b", "provider_url": "http://b"}]})
    assert [c["name"] for c in storage.get_config()["llm_connections"]] == ["b"]


def test_update_config_merges_story_roles():
    storage.update_config({"story_roles": {"narrator": {"connection": "main"}}})
    storage.update_config({"story_roles": {"narrator": {"prompt": "Hi {{player_name}}"}}})
    narrator = storage.get_config()["story_roles"]["narrator"]
    assert narrator == {"connection": "main", "prompt": "Hi {{player_name}}"}


def test_update_config_ignores_unknown_roles_and_keys():
    storage.update_config({"story_roles": {"bogus": {"connection": "x"},
                                           "narrator": {"evil": "y"}}})
    config = storage.get_config()
    assert "bogus" not in config["story_roles"]
    assert "evil" not in config["story_roles"]["narrator"]


def test_empty_prompt_falls_back_to_default():
    storage.update_config({"story_roles": {"narrator": {"prompt": ""}}})
    assert storage.get_config()["story_roles"]["narrator"]["prompt"] == storage.DEFAULT_NARRATOR_PROMPT


def test_resolve_connection():
    conn = {"name": "main", "provider_url": "http://localhost:5001"}
    storage.update_config({
        "llm_connections": [conn],
        "story_roles": {"narrator": {"connection": "main"}},
    })
    config = storage.get_config()
    assert storage.resolve_connection(config, "narrator") == conn
    assert storage.resolve_connection(config, "story_idea") is None


def test_resolve_connection_dangling_name():
    storage.update_config({"story_roles": {"narrator": {"connection": "gone"}}})
    assert storage.resolve_connection(storage.get_config(), "narrator") is None


def test_admin_credentials_round_trip():
    storage.set_admin_credentials(AdminCredentials(username="root", password="pw"))
    assert storage.get_admin_credentials() == AdminCredentials(username="root", password="pw")


def test_seed_admin_credentials_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "boss")
    monkeypatch.setenv("ADMIN_PASSWORD", "hunter2")
    storage.init_storage(tmp_path)
    assert storage.get_admin_credentials() == AdminCredentials(username="boss", password="hunter2")


def test_seed_admin_credentials_keeps_existing(tmp_path, monkeypatch):
    storage.init_storage(tmp_path)
    storage.set_admin_credentials(AdminCredentials(username="first", password="pw"))
    monkeypatch.setenv("ADMIN_USERNAME", "second")
    monkeypatch.setenv("ADMIN_PASSWORD", "pw2")
    storage.init_storage(tmp_path)
    assert storage.get_admin_credentials().username == "first"


def test_no_seed_without_env(tmp_path, monkeypatch):
    monkeypatch.delenv("ADMIN_USERNAME", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    storage.init_storage(tmp_path)
    assert storage.get_admin_credentials() is None
