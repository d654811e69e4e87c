from __future__ import annotations

import importlib.util
from pathlib import Path

import mongomock
import pytest

from affiliate_hub.database import Database

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "create_user.py"


@pytest.fixture()
def create_user_module():
    spec = importlib.util.spec_from_file_location("create_user_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def shared_database(monkeypatch: pytest.MonkeyPatch, create_user_module) -> Database:
    client = mongomock.MongoClient()
    database = Database(client, "script_tests")
    monkeypatch.setattr(database, "close", lambda: None)
    monkeypatch.setattr(create_user_module.Database, "connect", classmethod(lambda cls, uri, name: database))
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    return database


def test_creates_user_with_role(monkeypatch, create_user_module, shared_database, capsys) -> None:
    monkeypatch.setattr(create_user_module.getpass, "getpass", lambda _prompt: "admin-secret")

    exit_code = create_user_module.main(["Admin", "Admin@Example.com", "--role", "admin"])

    assert exit_code == 0
    user = shared_database.get_user_by_email("admin@example.com")
    assert user is not None
    assert user.role == "admin"
    assert "role 'admin'" in capsys.readouterr().out


def test_duplicate_user_exits_with_error(monkeypatch, create_user_module, shared_database, capsys) -> None:
    monkeypatch.setattr(create_user_module.getpass, "getpass", lambda _prompt: "admin-secret")
    shared_database.create_user("Existing", "taken@example.com", "hash")

    exit_code = create_user_module.main(["Someone", "taken@example.com"])

    assert exit_code == 1
    assert "User already exists" in capsys.readouterr().err


def test_short_passwords_are_refused(monkeypatch, create_user_module, shared_database) -> None:
    monkeypatch.setattr(create_user_module.getpass, "getpass", lambda _prompt: "123")

    with pytest.raises(SystemExit):
        create_user_module.main(["Someone", "short@example.com"])
