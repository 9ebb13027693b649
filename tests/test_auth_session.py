import json

import pytest

from admin_console.auth_session import AuthSession, FileTokenStore, MemoryTokenStore


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "session" / "token.json"
    FileTokenStore(str(path)).set("tok-1")

    assert FileTokenStore(str(path)).get() == "tok-1"
    assert json.loads(path.read_text(encoding="utf-8"))["token"] == "tok-1"


def test_file_store_clear_removes_token(tmp_path):
    path = tmp_path / "token.json"
    store = FileTokenStore(str(path))
    store.set("tok-1")
    store.clear()

    assert store.get() is None
    assert FileTokenStore(str(path)).get() is None


def test_file_store_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "token.json"
    path.write_text("{not json", encoding="utf-8")

    assert FileTokenStore(str(path)).get() is None


def test_clear_reports_whether_token_was_present():
    session = AuthSession(MemoryTokenStore("tok"))

    assert session.is_authenticated is True
    assert session.clear() is True
    assert session.clear() is False
    assert session.is_authenticated is False


def test_begin_rejects_empty_token():
    with pytest.raises(ValueError):
        AuthSession().begin("")
