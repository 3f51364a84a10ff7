import logging
from types import SimpleNamespace

import pytest

from opsboard import bootstrap_env
from opsboard.bootstrap_env import board_secrets


class BrokenSecrets:
    def __init__(self, error):
        self.error = error

    def to_dict(self):
        raise self.error


def test_table_entries_become_prefixed_variables():
    secrets = {"opsboard": {"api_base": "https://ops.example/api", "time-retries": 3}}
    assert dict(board_secrets(secrets)) == {
        "OPSBOARD_API_BASE": "https://ops.example/api",
        "OPSBOARD_TIME_RETRIES": "3",
    }


def test_prefixed_top_level_keys_are_kept_and_others_ignored():
    secrets = {"opsboard_log_level": "DEBUG", "OTHER_TOKEN": "x", "nested": {"a": 1}}
    assert dict(board_secrets(secrets)) == {"OPSBOARD_LOG_LEVEL": "DEBUG"}


def test_malformed_secrets_file_is_logged_and_skipped(monkeypatch, caplog):
    monkeypatch.setattr(bootstrap_env, "st", SimpleNamespace(secrets=BrokenSecrets(ValueError("bad toml"))))
    with caplog.at_level(logging.WARNING, logger="opsboard.bootstrap_env"):
        assert bootstrap_env._read_secrets() == {}
    assert "bad toml" in caplog.text


def test_missing_secrets_file_is_skipped_quietly(monkeypatch, caplog):
    monkeypatch.setattr(bootstrap_env, "st", SimpleNamespace(secrets=BrokenSecrets(FileNotFoundError("none"))))
    with caplog.at_level(logging.WARNING, logger="opsboard.bootstrap_env"):
        assert bootstrap_env._read_secrets() == {}
    assert caplog.records == []


def test_ensure_env_keeps_existing_values(monkeypatch):
    secrets = {"opsboard": {"api_base": "https://from-secrets/api"}}
    monkeypatch.setattr(bootstrap_env, "st", SimpleNamespace(secrets=SimpleNamespace(to_dict=lambda: secrets)))
    monkeypatch.setattr(bootstrap_env, "load_dotenv", lambda: False)
    monkeypatch.setenv("OPSBOARD_API_BASE", "https://already-set/api")
    bootstrap_env.ensure_env()
    assert bootstrap_env.os.environ["OPSBOARD_API_BASE"] == "https://already-set/api"


@pytest.mark.parametrize("error", [ValueError("bad"), FileNotFoundError("none")])
def test_ensure_env_survives_unreadable_secrets(monkeypatch, error):
    monkeypatch.setattr(bootstrap_env, "st", SimpleNamespace(secrets=BrokenSecrets(error)))
    monkeypatch.setattr(bootstrap_env, "load_dotenv", lambda: False)
    bootstrap_env.ensure_env()
