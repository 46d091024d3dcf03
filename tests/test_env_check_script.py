"""Tests for the environment drift detection script."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from scripts import check_env

SETTINGS_ENV_KEYS = [
    "APP_ENV",
    "DYNAMODB_TABLE_NAME",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
    "OAUTH_STATE_TTL",
    "RESEND_API_KEY",
    "SFDC_CLIENT_ID",
    "SFDC_CLIENT_SECRET",
    "TOKEN_ENCRYPTION_SECRET",
]

PRODUCTION_VALUES = {
    "APP_ENV": "production",
    "DYNAMODB_TABLE_NAME": "expense-companion",
    "GOOGLE_CLIENT_ID": "abc",
    "GOOGLE_CLIENT_SECRET": "secret",
    "GOOGLE_REDIRECT_URI": "https://example.com/api/google/callback",
    "RESEND_API_KEY": "re_123",
    "SFDC_CLIENT_ID": "sf",
    "SFDC_CLIENT_SECRET": "sf-secret",
    "TOKEN_ENCRYPTION_SECRET": "token-secret",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in SETTINGS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _restore_environment():
    """The script loads .env values straight into os.environ."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_settings_env(monkeypatch)
    _write_env(env_file, **PRODUCTION_VALUES)

    exit_code = check_env.main(
        ["record", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_OK
    baseline = hash_file.read_text(encoding="utf-8").strip()
    assert baseline

    _clear_settings_env(monkeypatch)
    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_OK

    _write_env(env_file, **{**PRODUCTION_VALUES, "GOOGLE_CLIENT_SECRET": "different"})

    _clear_settings_env(monkeypatch)
    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )
    assert exit_code == check_env.EXIT_CHECKSUM_ERROR


def test_validation_failure_for_malformed_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_settings_env(monkeypatch)
    _write_env(env_file, OAUTH_STATE_TTL="fifteen-minutes")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_development_fallbacks_are_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"

    _clear_settings_env(monkeypatch)
    _write_env(env_file, APP_ENV="development")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    output = capsys.readouterr().out
    assert "RESEND_API_KEY unset" in output
    assert "SFDC_CLIENT_ID/SECRET unset" in output


def test_strict_mode_rejects_development_fallbacks(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_settings_env(monkeypatch)
    _write_env(env_file, **{**PRODUCTION_VALUES, "RESEND_API_KEY": ""})

    exit_code = check_env.main(["check", "--strict", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_DEVELOPMENT_FALLBACK


def test_strict_mode_accepts_complete_configuration(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_settings_env(monkeypatch)
    _write_env(env_file, **PRODUCTION_VALUES)

    exit_code = check_env.main(["check", "--strict", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_OK
