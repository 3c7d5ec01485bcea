"""LLM provider configuration commands."""

from __future__ import annotations

from typing import Optional

import typer

from . import config_manager


def print_success(message: str):
    typer.echo(typer.style(f"✅ {message}", fg=typer.colors.GREEN))


def print_error(message: str):
    typer.echo(typer.style(f"❌ {message}", fg=typer.colors.RED), err=True)


def print_info(message: str):
    typer.echo(typer.style(f"ℹ️  {message}", fg=typer.colors.BLUE))


def mask_key(api_key: str) -> str:
    if len(api_key) <= 8:
        return "•" * len(api_key)
    return api_key[:8] + "•" * min(len(api_key) - 8, 16)


def set_llm(
    provider: str = typer.Argument(..., help="LLM provider: ollama, openai, anthropic, groq"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name (uses provider default if not set)."),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-k", help="API key for cloud providers."),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", "-e", help="Custom endpoint URL."),
):
    """Switch the LLM provider used for component analysis.

    Examples:
        insight set-llm openai -k YOUR_API_KEY -m gpt-4o
        insight set-llm openai -k KEY -e https://openrouter.ai/api/v1/chat/completions
        insight set-llm ollama -m qwen2.5-coder:7b
    """
    provider = provider.lower().strip()
    if provider not in config_manager.ALL_PROVIDERS:
        print_error(f"Unknown provider '{provider}'. Choose from: {', '.join(config_manager.ALL_PROVIDERS)}")
        raise typer.Exit(code=1)

    current = config_manager.load_config()
    defaults = config_manager.get_provider_config(provider)

    resolved_model = model or defaults.get("model", "")
    resolved_endpoint = endpoint or defaults.get("endpoint", "")
    resolved_api_key = api_key or ""

    if provider != "ollama" and not resolved_api_key:
        if current.get("provider") == provider and current.get("api_key"):
            resolved_api_key = current["api_key"]
            print_info(f"Reusing existing API key for {provider}")
        else:
            resolved_api_key = typer.prompt(f"Enter your {provider} API key", hide_input=True)

    if not config_manager.save_config(provider, resolved_model, resolved_api_key, resolved_endpoint):
        print_error("Failed to save configuration!")
        raise typer.Exit(code=1)

    print_success(f"LLM provider set to: {provider}")
    typer.echo(f"  Provider: {typer.style(provider, fg=typer.colors.CYAN)}")
    typer.echo(f"  Model:    {typer.style(resolved_model, fg=typer.colors.CYAN)}")
    if resolved_endpoint:
        typer.echo(f"  Endpoint: {resolved_endpoint}")


def show_llm():
    """Show the current LLM provider configuration."""
    cfg = config_manager.load_config()

    provider = cfg.get("provider", "openai")
    model = cfg.get("model", "")
    endpoint = cfg.get("endpoint", "")
    api_key = cfg.get("api_key", "")

    typer.echo(f"  Provider  {typer.style(provider.upper(), bold=True)}")
    typer.echo(f"  Model     {typer.style(model or '(default)', bold=True)}")
    if endpoint:
        typer.echo(f"  Endpoint  {typer.style(endpoint, dim=True)}")
    if api_key:
        typer.echo(f"  API Key   {mask_key(api_key)}")
    else:
        typer.echo(f"  API Key   {typer.style('(not set)', dim=True)}")
    typer.echo(f"  Config    {typer.style(str(config_manager.CONFIG_FILE), dim=True)}")
