from companion_stories import storage
from companion_stories.demo import DEMO_STORIES, create_demo_data


def test_create_demo_data():
    storage.create_persona({"name": "Leftover"})
    create_demo_data()

    personas = storage.list_personas()
    assert [p.name for p in personas] == ["Meera"]
    stories = storage.list_stories()
    assert len(stories) == len(DEMO_STORIES)
    assert all(s.protagonist_id == personas[0].id for s in stories)
    assert all(s.protagonist_name_snapshot == "Meera" for s in stories)


def test_create_demo_data_clears_progress():
    create_demo_data()
    story = storage.list_stories()[0]
    progress_file = storage.progress_dir() / "u1" / f"{story.id}.json"
    progress_file.parent.mkdir(parents=True)
    progress_file.write_text("{}")

    create_demo_data()
    assert not progress_file.exists()
