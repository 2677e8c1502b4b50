"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class AIConfig:
    provider: str = "ollama"
    model: str = "mistral-nemo"
    ollama_base_url: str = "http://localhost:11434"
    ollama_api_key: str = ""
    max_body_chars: int = 2000
    max_tokens: int = 4096

    def to_provider_dict(self) -> dict:
        """Return a dict suitable for passing to get_provider()."""
        return {
            "ollama_base_url": self.ollama_base_url,
            "ollama_api_key": self.ollama_api_key,
            "max_tokens": self.max_tokens,
        }

    @property
    def model_spec(self) -> str:
        return f"{self.provider}:{self.model}"


@dataclass
class LeadsConfig:
    top_n: int = 10
    sample_size: int = 10


@dataclass
class ICPWeights:
    title: int = 30
    industry: int = 25
    company_size: int = 20
    geography: int = 10
    exclusions: int = 15
    # Only counted when the criteria list required fields.
    required_fields: int = 20


@dataclass
class ICPConfig:
    weights: ICPWeights = field(default_factory=ICPWeights)
    criteria_file: str = "icp.yaml"


@dataclass
class SubjectPenalties:
    empty: int = 50
    too_short: int = 10
    too_long: int = 15
    single_all_caps: int = 5
    excessive_all_caps: int = 15
    no_personalization: int = 10
    no_power_words: int = 5
    fake_reply_prefix: int = 10
    multiple_exclamations: int = 10
    multiple_questions: int = 5
    spam_word: int = 8


@dataclass
class SpamPenalties:
    subject_occurrence: int = 30
    body_occurrence: int = 10
    # Every occurrence of a word after its first is divided by this factor.
    repeat_divisor: int = 2


@dataclass
class CopyConfig:
    min_subject_length: int = 20
    max_subject_length: int = 60
    subject_weight: float = 0.4
    spam_weight: float = 0.6
    subject_penalties: SubjectPenalties = field(default_factory=SubjectPenalties)
    spam_penalties: SpamPenalties = field(default_factory=SpamPenalties)


@dataclass
class CacheConfig:
    ttl_seconds: int = 300


@dataclass
class Config:
    ai: AIConfig = field(default_factory=AIConfig)
    leads: LeadsConfig = field(default_factory=LeadsConfig)
    icp: ICPConfig = field(default_factory=ICPConfig)
    copy: CopyConfig = field(default_factory=CopyConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    lexicon_file: str = "lexicons.yaml"


def _dict_to_config(data: dict) -> Config:
    """Convert a raw dict to a Config dataclass, handling nested structures."""
    from dacite import Config as DaciteConfig
    from dacite import from_dict

    return from_dict(data_class=Config, data=data, config=DaciteConfig(cast=[float]))


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    env_path = os.environ.get("LEADLINT_CONFIG")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return p

    local = Path("config.yaml")
    if local.exists():
        return local

    xdg = Path.home() / ".config" / "leadlint" / "config.yaml"
    if xdg.exists():
        return xdg

    return None


def _load_dotenv() -> None:
    """Load .env file from current directory if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        # Don't overwrite already-set env vars
        if key not in os.environ:
            os.environ[key] = value


def _apply_env_overrides(config: Config) -> Config:
    """Override config values from environment variables.

    Supports:
        ollama_host     -> config.ai.ollama_base_url
        ollama_api_key  -> config.ai.ollama_api_key
        model_name      -> config.ai.model
    """
    if os.environ.get("ollama_host"):
        config.ai.ollama_base_url = os.environ["ollama_host"]
    if os.environ.get("ollama_api_key"):
        config.ai.ollama_api_key = os.environ["ollama_api_key"]
    if os.environ.get("model_name"):
        config.ai.model = os.environ["model_name"]
    return config


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from YAML file, merging with defaults.

    Also loads .env file and applies environment variable overrides.
    """
    _load_dotenv()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = _find_config_file()

    if config_path is None:
        config = Config()
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        config = _dict_to_config(raw)

    return _apply_env_overrides(config)
