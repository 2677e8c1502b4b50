"""Copy-review model lookup: "provider:model" specs to provider clients."""

from __future__ import annotations

from leadlint.ai.anthropic_provider import AnthropicProvider
from leadlint.ai.base import AIProvider
from leadlint.ai.ollama import OllamaProvider

DEFAULT_PROVIDER = "ollama"


def _ollama(settings: dict) -> AIProvider:
    return OllamaProvider(
        base_url=settings.get("ollama_base_url", "http://localhost:11434"),
        api_key=settings.get("ollama_api_key", ""),
    )


def _anthropic(settings: dict) -> AIProvider:
    return AnthropicProvider(max_tokens=settings.get("max_tokens", 4096))


PROVIDERS = {
    "ollama": _ollama,
    "anthropic": _anthropic,
}


def get_provider(model_spec: str, config: dict | None = None) -> tuple[AIProvider, str]:
    """Build the client that reviews copy for ``model_spec``.

    The text before the first colon names the provider, and a spec with no
    colon is an Ollama model. Tagged Ollama models need the prefix:
    'ollama:llama3:8b'. ``config`` is ``AIConfig.to_provider_dict()``.
    """
    spec = model_spec.strip()
    provider_name, sep, model_name = spec.partition(":")
    if not sep:
        provider_name, model_name = DEFAULT_PROVIDER, spec

    build = PROVIDERS.get(provider_name)
    if build is None:
        known = ", ".join(repr(p) for p in PROVIDERS)
        raise ValueError(f"Unknown AI provider for copy review: {provider_name!r}. Use one of {known}.")
    if not model_name:
        raise ValueError(f"No model name in {model_spec!r}; expected 'provider:model'.")
    return build(config or {}), model_name
