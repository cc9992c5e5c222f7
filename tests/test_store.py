"""Tests for SessionStore persistence."""
import json

from conftest import SAMPLE_COOKIES
from livestream_bot.auth.store import SessionStore
from livestream_bot.models.session import Cookie


def _cookies():
    return [Cookie.model_validate(c) for c in SAMPLE_COOKIES]


def test_save_then_load(tmp_path):
    store = SessionStore(tmp_path / "nested" / "session.json")
    store.save(_cookies())

    loaded = store.load()

    assert [c.name for c in loaded] == ["SPC_EC", "SPC_U"]
    assert loaded[0].http_only is True
    assert store.exists()


def test_saved_file_uses_browser_keys(tmp_path):
    path = tmp_path / "session.json"
    SessionStore(path).save(_cookies())

    stored = json.loads(path.read_text())

    assert "httpOnly" in stored[0]
    assert "http_only" not in stored[0]
    assert "expires" not in stored[0]


def test_save_leaves_no_temp_files(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    store.save(_cookies())
    store.save(_cookies()[:1])

    assert [p.name for p in tmp_path.iterdir()] == ["session.json"]
    assert len(store.load()) == 1


def test_load_accepts_unknown_keys(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps([{"name": "a", "value": "b", "priority": "High"}]))

    loaded = SessionStore(path).load()

    assert loaded[0].name == "a"
    assert loaded[0].path == "/"


def test_load_missing_and_malformed(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(path)
    assert store.load() is None

    path.write_text("{broken")
    assert store.load() is None

    path.write_text(json.dumps({"cookies": []}))
    assert store.load() is None


def test_delete_is_idempotent(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    store.save(_cookies())
    store.delete()
    store.delete()
    assert not store.exists()
