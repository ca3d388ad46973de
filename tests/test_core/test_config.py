from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from polymux import config as polymux_config
from polymux.config import Config, load_config


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file_or_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    cfg = load_config()

    assert cfg.api_key is None
    assert cfg.base_url == "https://api.polygon.io"
    assert cfg.s3_endpoint == "https://files.polygon.io"
    assert cfg.timeout_seconds == 30.0
    assert cfg.has_s3_credentials is False


def test_yaml_environment_section_is_selected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(
        tmp_path / "polymux.yml",
        "development:\n  api_key: dev-key\nproduction:\n  api_key: prod-key\n  timeout_seconds: 5\n",
    )
    monkeypatch.setenv("POLYMUX_CONFIG_PATH", str(path))
    monkeypatch.setenv("POLYMUX_ENV", "production")

    cfg = load_config()

    assert cfg.api_key == "prod-key"
    assert cfg.timeout_seconds == 5.0


def test_flat_yaml_file_is_accepted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path / "polymux.yml", "api_key: flat-key\ns3_access_key_id: akid\ns3_secret_access_key: secret\n")
    monkeypatch.chdir(tmp_path)

    cfg = load_config()

    assert cfg.api_key == "flat-key"
    assert cfg.has_s3_credentials is True


def test_config_directory_file_wins_over_root_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config").mkdir()
    _write(tmp_path / "config" / "polymux.yml", "development:\n  api_key: nested-key\n")
    _write(tmp_path / "polymux.yml", "development:\n  api_key: root-key\n")
    monkeypatch.chdir(tmp_path)

    assert load_config().api_key == "nested-key"


def test_env_overrides_win_over_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "polymux.yml", "development:\n  api_key: file-key\n  base_url: https://file.example\n")
    monkeypatch.setenv("POLYMUX_CONFIG_PATH", str(path))
    monkeypatch.setenv("POLYMUX_API_KEY", "env-key")
    monkeypatch.setenv("POLYMUX_TIMEOUT_SECONDS", "12.5")

    cfg = load_config()

    assert cfg.api_key == "env-key"
    assert cfg.base_url == "https://file.example"
    assert cfg.timeout_seconds == 12.5


def test_explicit_overrides_win_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("POLYMUX_API_KEY", "env-key")

    cfg = load_config(api_key="explicit-key", base_url="https://proxy.example/")

    assert cfg.api_key == "explicit-key"
    assert cfg.base_url == "https://proxy.example"


def test_blank_env_values_are_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("POLYMUX_API_KEY", "   ")

    assert load_config().api_key is None


def test_unreadable_yaml_logs_warning_and_falls_back(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    path = _write(tmp_path / "broken.yml", "development: [unclosed\n")
    monkeypatch.setenv("POLYMUX_CONFIG_PATH", str(path))

    with caplog.at_level(logging.WARNING, logger=polymux_config.__name__):
        cfg = load_config()

    assert cfg.api_key is None
    assert "config_file_unreadable" in caplog.text


def test_config_rejects_unknown_fields_and_bad_timeout() -> None:
    with pytest.raises(PydanticValidationError):
        Config(api_key="k", region="us-east-1")
    with pytest.raises(PydanticValidationError):
        Config(timeout_seconds=0)
