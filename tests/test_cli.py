"""Unit tests for main.py -- the `nys` command-line tools.

Covers:
- authorize: ALLOW exits 0, DENY exits 1 and names the reason
- authorize: patterns are tried in the order given
- authorize: malformed capability text is denied as MalformedCapability
- register: invalid ids and mismatched passwords and passwords over 72 bytes exit 2 before any store is opened
"""

import pytest

import main


def test_authorize_allow(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main.main(["authorize", "nys:tasker:alice:TaskList:Write", "--grant", "nys:*:alice:*:*"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == "ALLOW"


def test_authorize_deny(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main.main(["authorize", "nys:tasker:bob:TaskList:Read", "--grant", "nys:*:alice:*:*"])
    assert rc == 1
    assert capsys.readouterr().out.strip() == "DENY NoMatchingPrivilege"


def test_authorize_without_grants_denies(capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(["authorize", "nys:tasker:alice:TaskList:Read"]) == 1
    assert "NoMatchingPrivilege" in capsys.readouterr().out


def test_authorize_tries_each_grant(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main.main(
        [
            "authorize",
            "nys:tasker:alice:TaskList:Write",
            "--grant",
            "nys:tasklist:alice:*:*",
            "--grant",
            "nys:*:alice:*:*",
        ]
    )
    assert rc == 0
    assert capsys.readouterr().out.strip() == "ALLOW"


def test_authorize_malformed(capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(["authorize", "nys:tasker:alice", "--grant", "nys:*:alice:*:*"]) == 1
    assert capsys.readouterr().out.strip() == "DENY MalformedCapability"


def test_register_rejects_bad_id(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(main, "RecordStore", pytest.fail)
    assert main.main(["register", "ali:ce"]) == 2
    assert "not a valid entity id" in capsys.readouterr().err


def test_register_password_mismatch(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    answers = iter(["first-password", "second-password"])
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": next(answers))
    monkeypatch.setattr(main, "RecordStore", pytest.fail)
    assert main.main(["register", "alice"]) == 2
    assert "do not match" in capsys.readouterr().err


def test_register_password_over_72_bytes(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": "é" * 40)
    monkeypatch.setattr(main, "RecordStore", pytest.fail)
    assert main.main(["register", "alice"]) == 2
    assert "72 bytes" in capsys.readouterr().err
