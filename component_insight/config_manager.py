"""Configuration manager for Component Insight using TOML files."""

from __future__ import annotations

from typing import Any, Dict

import toml

from .config import BASE_DIR


CONFIG_FILE = BASE_DIR / "config.toml"


# Default configurations for each provider
DEFAULT_CONFIGS = {
    "ollama": {
        "provider": "ollama",
        "model": "qwen2.5-coder:7b",
        "endpoint": "http://127.0.0.1:11434/api/generate",
    },
    "openai": {
        "provider": "openai",
        "model": "gpt-4o",
        "api_key": "",
        "endpoint": "https://api.openai.com/v1/chat/completions",
    },
    "anthropic": {
        "provider": "anthropic",
        "model": "claude-3-7-sonnet-latest",
        "api_key": "",
    },
    "groq": {
        "provider": "groq",
        "model": "llama-3.3-70b-versatile",
        "api_key": "",
    },
}

ALL_PROVIDERS = list(DEFAULT_CONFIGS)

DEFAULT_ANALYSIS = {
    "max_components": 100,
    "batch_delay": 0.8,
    "entry_file": "",
    "prompt": "",
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError):
        return {}


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    try:
        with open(CONFIG_FILE, "w") as f:
            toml.dump(config, f)
        return True
    except OSError:
        return False


def load_config() -> Dict[str, Any]:
    """Load the ``[llm]`` section.

    Returns:
        Provider settings, or the OpenAI-compatible defaults when the file
        or the section is missing.
    """
    full = load_full_config()
    return full.get("llm", DEFAULT_CONFIGS["openai"].copy())


def save_config(provider: str, model: str, api_key: str = "", endpoint: str = "") -> bool:
    """Save LLM configuration to TOML file.

    Preserves other sections (e.g. ``[analysis]``) in the file.

    Args:
        provider: Provider name (ollama, openai, anthropic, groq)
        model: Model name
        api_key: API key for cloud providers
        endpoint: Custom endpoint (Ollama or any OpenAI-compatible gateway)

    Returns:
        True if saved successfully, False otherwise
    """
    config = load_full_config()

    config["llm"] = {
        "provider": provider,
        "model": model,
    }
    if api_key:
        config["llm"]["api_key"] = api_key
    if endpoint:
        config["llm"]["endpoint"] = endpoint

    return _save_full_config(config)


def load_analysis_config() -> Dict[str, Any]:
    """Load the ``[analysis]`` section merged over the defaults."""
    merged = DEFAULT_ANALYSIS.copy()
    merged.update(load_full_config().get("analysis", {}))
    return merged


def get_provider_config(provider: str) -> Dict[str, Any]:
    """Get default configuration for a specific provider."""
    return DEFAULT_CONFIGS.get(provider, DEFAULT_CONFIGS["openai"]).copy()
