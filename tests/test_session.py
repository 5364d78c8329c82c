"""
Session store tests.
"""

import pytest

from atm.core.errors import NotAuthenticated
from atm.schemas.session import SessionIdentity
from atm.services.session import FileSessionStore


@pytest.fixture
def store(tmp_path):
    return FileSessionStore(tmp_path / "nested" / "session.json")


def test_load_without_session(store):
    """Not having logged in yet is not an error."""
    assert store.load() is None


def test_save_and_load(store):
    store.save(SessionIdentity(id=7, name="alice"))

    assert store.load() == SessionIdentity(id=7, name="alice")


def test_load_is_idempotent(store):
    store.save(SessionIdentity(id=7, name="alice"))

    assert store.load() == store.load()


def test_save_overwrites_previous_session(store):
    store.save(SessionIdentity(id=7, name="alice"))
    store.save(SessionIdentity(id=8, name="bob"))

    assert store.load() == SessionIdentity(id=8, name="bob")


def test_clear(store):
    store.save(SessionIdentity(id=7, name="alice"))

    store.clear()
    store.clear()

    assert store.load() is None


def test_corrupt_session_file(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    assert store.load() is None


def test_require(store):
    with pytest.raises(NotAuthenticated):
        store.require()

    store.save(SessionIdentity(id=7, name="alice"))
    assert store.require().id == 7


def test_default_path_from_settings(monkeypatch, tmp_path):
    from atm.core.config import settings

    monkeypatch.setattr(settings, "SESSION_FILE", str(tmp_path / "s.json"))

    assert FileSessionStore().path == tmp_path / "s.json"
