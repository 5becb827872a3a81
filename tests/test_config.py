"""Tests for settings resolution and credential discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from awscosts.config import Settings, load_settings, resolve_credentials
from awscosts.errors import ConfigurationError


@pytest.fixture
def aws_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the shared config and credentials files at an empty directory."""
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    return tmp_path


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AWS_DEFAULT_REGION")
    assert load_settings() == Settings()


def test_load_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "billing")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_COSTS_TIMEOUT", "12.5")
    monkeypatch.setenv("AWS_COSTS_RETRIES", "5")
    monkeypatch.setenv("AWS_COSTS_ZERO_AMOUNTS", "DROP")

    settings = load_settings()

    assert settings == Settings(
        profile="billing",
        region="eu-west-1",
        timeout=12.5,
        retries=5,
        keep_zero_amounts=False,
    )


def test_explicit_arguments_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "billing")
    settings = load_settings(profile="ops", region="ap-south-1")
    assert (settings.profile, settings.region) == ("ops", "ap-south-1")


def test_region_falls_back_to_default_region_env() -> None:
    assert load_settings().region == "us-east-1"


@pytest.mark.parametrize(
    "name,value",
    [
        ("AWS_COSTS_TIMEOUT", "soon"),
        ("AWS_COSTS_RETRIES", "three"),
        ("AWS_COSTS_ZERO_AMOUNTS", "maybe"),
    ],
)
def test_invalid_values_rejected(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match=name):
        load_settings()


def test_resolve_credentials_from_env(aws_files: Path) -> None:
    creds = resolve_credentials()

    assert creds.access_key_id == "testing"
    assert creds.secret_access_key == "testing"
    assert creds.session_token == "testing"
    assert creds.region == "us-east-1"


def test_resolve_credentials_explicit_region(aws_files: Path) -> None:
    assert resolve_credentials(region="eu-central-1").region == "eu-central-1"


def test_resolve_credentials_named_profile(
    aws_files: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("AWS_DEFAULT_REGION")
    (aws_files / "credentials").write_text(
        "[billing]\n"
        "aws_access_key_id = AKIDBILLING\n"
        "aws_secret_access_key = billing-secret\n"
    )
    (aws_files / "config").write_text("[profile billing]\nregion = eu-west-2\n")

    creds = resolve_credentials("billing")

    assert creds.access_key_id == "AKIDBILLING"
    assert creds.secret_access_key == "billing-secret"
    assert creds.session_token is None
    assert creds.region == "eu-west-2"


def test_resolve_credentials_unknown_profile(aws_files: Path) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_credentials("does-not-exist")
    assert "does-not-exist" in str(exc_info.value)
    assert exc_info.value.remediation


def test_resolve_credentials_none_found(
    aws_files: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_SECURITY_TOKEN",
    ):
        monkeypatch.delenv(name)

    with pytest.raises(ConfigurationError, match="No credentials found"):
        resolve_credentials()


def test_credentials_repr_hides_secret(aws_files: Path) -> None:
    text = repr(resolve_credentials())
    assert "secret_access_key" not in text
    assert "session_token=set" in text
