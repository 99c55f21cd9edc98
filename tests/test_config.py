import pytest

from lucius.config import load_raw_config
from lucius.config.core import Core
from lucius.config.packs import Packs
from lucius.config.transcript import Transcript
from lucius.errors import ConfigurationMissing


def test_load_raw_config_missing_file_is_empty(tmp_path):
    assert load_raw_config(tmp_path / "absent.toml") == {}


def test_load_raw_config_honours_env_var(tmp_path, monkeypatch):
    path = tmp_path / "lucius.toml"
    path.write_text('[lucius.openai]\nmodel = "gpt-test"\n', encoding="utf-8")
    monkeypatch.setenv("LUCIUS_CONFIG", str(path))

    assert load_raw_config() == {"lucius": {"openai": {"model": "gpt-test"}}}


def test_core_prefers_toml_over_env(monkeypatch):
    monkeypatch.setenv("OPENAI_MODEL", "env-model")
    monkeypatch.setenv("LUCIUS_PORT", "9000")

    cfg = Core({"lucius": {"openai": {"model": "toml-model", "api_style": "chat"}, "server": {"port": 8080}}})

    assert cfg.OPENAI_MODEL == "toml-model"
    assert cfg.OPENAI_API_STYLE == "chat"
    assert cfg.PORT == 8080
    assert cfg.MESSAGE_MAX_CHARS == 2000
    assert cfg.SESSION_ID_MAX_CHARS == 120


def test_core_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("OPENAI_MODEL", "env-model")
    monkeypatch.setenv("LUCIUS_STATUS_ENABLED", "false")

    cfg = Core({})

    assert cfg.OPENAI_MODEL == "env-model"
    assert cfg.STATUS_ENABLED is False


def test_core_unknown_api_style_falls_back_to_responses():
    assert Core({"lucius": {"openai": {"api_style": "bogus"}}}).OPENAI_API_STYLE == "responses"


def test_core_reads_key_from_configured_env_name(monkeypatch):
    monkeypatch.setenv("MY_LUCIUS_KEY", "k-123")

    cfg = Core({"lucius": {"openai": {"api_key_env": "MY_LUCIUS_KEY"}}})

    assert cfg.OPENAI_API_KEY == "k-123"


def test_validate_reports_missing_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_KEY", raising=False)

    with pytest.raises(ConfigurationMissing) as excinfo:
        Core({}).validate()

    assert "OPENAI_API_KEY" in str(excinfo.value)


def test_packs_defaults_define_three_layers(monkeypatch):
    monkeypatch.delenv("PACKS_TTL_MS", raising=False)
    monkeypatch.delenv("PACKS_AUTH_TOKEN", raising=False)

    cfg = Packs({})

    assert cfg.TTL_MS == 600000
    assert cfg.REMOTE_TIMEOUT_MS == 5000
    assert cfg.AUTH_TOKEN is None
    assert [layer["name"] for layer in cfg.LAYERS] == ["core", "product", "overlay"]
    assert cfg.LAYERS[0]["env"] == "LUCIUS_SYSTEM_PROMPT"
    assert cfg.LAYERS[1]["env"] == "LUCIUS_KB"


def test_packs_layers_from_toml(monkeypatch):
    monkeypatch.setenv("CUSTOM_TOKEN", "tok")
    cfg = Packs(
        {
            "lucius": {
                "packs": {
                    "ttl_ms": 0,
                    "auth_token_env": "CUSTOM_TOKEN",
                    "layers": [{"name": "only", "priority": 5}],
                }
            }
        }
    )

    assert cfg.TTL_MS == 0
    assert cfg.AUTH_TOKEN == "tok"
    assert cfg.LAYERS == [{"name": "only", "priority": 5}]


def test_transcript_limits():
    cfg = Transcript({"lucius": {"transcript": {"path": "logs/t.jsonl", "reply_max_chars": 10}}})

    assert cfg.PATH == "logs/t.jsonl"
    assert cfg.USER_MAX_CHARS == 2000
    assert cfg.REPLY_MAX_CHARS == 10
