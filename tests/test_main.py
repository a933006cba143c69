# tests/test_main.py

import pytest

import main
from ladder.store import LocalStore, STORAGE_KEYS


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    monkeypatch.delenv("LADDER_API_URL", raising=False)
    return str(tmp_path / "ladder.db")


def test_movement_label():
    assert main._movement_label(2) == "▲2"
    assert main._movement_label(-4) == "▼4"
    assert main._movement_label(0) == "—"


def test_pin_roundtrip(db_path, capsys):
    assert main.main(["--db", db_path, "pin", "1234"]) == 0
    assert main.main(["--db", db_path, "pin"]) == 0
    assert capsys.readouterr().out.strip().splitlines()[-1] == "1234"


def test_submit_without_api_is_queued(db_path, capsys):
    code = main.main([
        "--db", db_path, "submit",
        "--challenger", "C", "--defender", "B", "--winner", "C", "--score", "2-1",
    ])
    assert code == 0
    assert "[QUEUED]" in capsys.readouterr().out

    store = LocalStore(db_path)
    try:
        assert len(store.get_json(STORAGE_KEYS["pending"])) == 1
    finally:
        store.close()


def test_invalid_submission_exits_nonzero(db_path, capsys):
    code = main.main([
        "--db", db_path, "submit",
        "--challenger", "C", "--defender", "C", "--winner", "C", "--score", "2-1",
    ])
    assert code == 1
    assert "cannot be the same" in capsys.readouterr().out


def test_refresh_offline_without_cache_fails(db_path, capsys):
    assert main.main(["--db", db_path, "refresh"]) == 1
    assert "Failed to load" in capsys.readouterr().out


def test_sync_with_nothing_pending(db_path, capsys):
    assert main.main(["--db", db_path, "sync"]) == 0
    assert "Synced 0, 0 remaining." in capsys.readouterr().out
