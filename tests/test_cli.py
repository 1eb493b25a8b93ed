"""
tests/test_cli.py -- Tests for the operator CLI in main.py.

Prompts are answered by monkeypatching input() and getpass(); the database
is a temporary SQLite file passed with --database-url.
"""

from __future__ import annotations

import pytest

import main
from auth.models import Role
from auth.passwords import verify_password
from auth.store import SQLUserStore
from content.store import ContentStore


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _answer_passwords(monkeypatch, *answers: str) -> None:
    replies = iter(answers)
    monkeypatch.setattr(main, "getpass", lambda prompt="": next(replies))


class TestCreateAdmin:
    def test_creates_admin(self, db_url: str, monkeypatch, capsys) -> None:
        _answer_passwords(monkeypatch, "rootpass", "rootpass")
        monkeypatch.setattr("builtins.input", lambda prompt="": "")
        code = main.main(["--database-url", db_url, "create-admin", "--username", "root", "--email", "root@uni.example"])
        assert code == 0
        assert "Admin user created" in capsys.readouterr().out

        store = SQLUserStore(db_url)
        root = store.find_by_username("root")
        store.close()
        assert root.role is Role.admin
        assert root.first_name is None
        assert verify_password("rootpass", root.hashed_password)

    def test_prompts_for_missing_fields(self, db_url: str, monkeypatch) -> None:
        answers = iter(["prompted", "prompted@uni.example", "Grace", "Hopper"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        _answer_passwords(monkeypatch, "secret1", "secret1")
        assert main.main(["--database-url", db_url, "create-admin"]) == 0

        store = SQLUserStore(db_url)
        user = store.find_by_username("prompted")
        store.close()
        assert user.first_name == "Grace"
        assert user.last_name == "Hopper"

    def test_short_password_refused(self, db_url: str, monkeypatch, capsys) -> None:
        _answer_passwords(monkeypatch, "123", "123")
        code = main.main(["--database-url", db_url, "create-admin", "--username", "root", "--email", "r@uni.example"])
        assert code == 1
        assert "at least 6" in capsys.readouterr().err

    def test_mismatched_confirmation_refused(self, db_url: str, monkeypatch) -> None:
        _answer_passwords(monkeypatch, "secret1", "secret2")
        code = main.main(["--database-url", db_url, "create-admin", "--username", "root", "--email", "r@uni.example"])
        assert code == 1

    def test_duplicate_username_refused(self, db_url: str, monkeypatch, capsys) -> None:
        monkeypatch.setattr("builtins.input", lambda prompt="": "")
        args = ["--database-url", db_url, "create-admin", "--username", "root", "--email", "r@uni.example"]
        _answer_passwords(monkeypatch, "secret1", "secret1", "secret1", "secret1")
        assert main.main(args) == 0
        assert main.main(args) == 1
        assert "already exists" in capsys.readouterr().err


class TestSeedContent:
    def test_seed_then_skip(self, db_url: str, capsys) -> None:
        assert main.main(["--database-url", db_url, "seed-content"]) == 0
        assert "Seeded" in capsys.readouterr().out
        assert main.main(["--database-url", db_url, "seed-content"]) == 0
        assert "nothing seeded" in capsys.readouterr().out

        store = ContentStore(db_url)
        assert len(store.list_news()) == 3
        store.close()
