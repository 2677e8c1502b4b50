"""Tests for configuration loading."""

import pytest
import yaml

from leadlint.config import Config, load_config


def test_default_config():
    """Default config has sensible defaults."""
    config = Config()
    assert config.ai.provider == "ollama"
    assert config.ai.model_spec == "ollama:mistral-nemo"
    assert config.leads.top_n == 10
    weights = config.icp.weights
    assert (weights.title, weights.industry, weights.company_size) == (30, 25, 20)
    assert (weights.geography, weights.exclusions, weights.required_fields) == (10, 15, 20)
    assert config.copy.min_subject_length == 20
    assert config.copy.max_subject_length == 60
    assert config.cache.ttl_seconds == 300


def test_load_missing_config_uses_defaults(monkeypatch, tmp_path):
    """Loading with no config file returns defaults."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    config = load_config()
    assert isinstance(config, Config)
    assert config.copy.spam_penalties.subject_occurrence == 30


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_load_config_from_yaml(monkeypatch, tmp_path):
    """Loading from a YAML file merges with defaults."""
    monkeypatch.chdir(tmp_path)

    data = {
        "ai": {"model": "llama3"},
        "icp": {"weights": {"title": 40}},
        "copy": {"subject_weight": 1, "subject_penalties": {"empty": 60}},
    }
    config_file = tmp_path / "test_config.yaml"
    with open(config_file, "w") as f:
        yaml.dump(data, f)

    config = load_config(str(config_file))

    assert config.ai.model == "llama3"
    assert config.icp.weights.title == 40
    assert config.icp.weights.industry == 25
    assert config.copy.subject_weight == 1.0
    assert config.copy.subject_penalties.empty == 60
    assert config.copy.subject_penalties.too_long == 15


def test_config_env_var(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "elsewhere.yaml"
    config_file.write_text("leads:\n  top_n: 3\n")
    monkeypatch.setenv("LEADLINT_CONFIG", str(config_file))
    assert load_config().leads.top_n == 3


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("model_name", "qwen2.5")
    monkeypatch.setenv("ollama_host", "http://gpu-box:11434")

    config = load_config()

    assert config.ai.model == "qwen2.5"
    assert config.ai.to_provider_dict()["ollama_base_url"] == "http://gpu-box:11434"


def test_dotenv_file_does_not_override_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("model_name", "from-env")
    # Registered so teardown removes the value .env loads
    monkeypatch.setenv("ollama_api_key", "")
    monkeypatch.delenv("ollama_api_key")
    (tmp_path / ".env").write_text("# local\nmodel_name=from-dotenv\nollama_api_key=secret\n")

    config = load_config()

    assert config.ai.model == "from-env"
    assert config.ai.ollama_api_key == "secret"
