"""
infrastructure.llm.llm_builder - Centralized chat model construction.

Single source of truth for building chat models for the agent and for
the tools that make their own model calls. The provider is controlled by
the LLM_PROVIDER environment variable.

Supported providers:
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama

All three support native tool calling (``bind_tools``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel

from finance_agent.infrastructure.config import Settings

logger = logging.getLogger(__name__)


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 1.0,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build a chat model for the given provider.

    Raises:
        ValueError: If the provider is unknown or required credentials are missing.
    """
    provider = provider.lower().strip()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER='openai'")

        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "api_key": openai_api_key,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        logger.info("Building ChatOpenAI (model=%s)", model)
        return ChatOpenAI(**kwargs)

    elif provider == "groq":
        from langchain_groq import ChatGroq

        if not groq_api_key:
            raise ValueError("GROQ_API_KEY is required when LLM_PROVIDER='groq'")

        kwargs = {
            "model": model,
            "temperature": temperature,
            "api_key": groq_api_key,
            "max_tokens": max_tokens if max_tokens is not None else 1024,
        }

        logger.info("Building ChatGroq (model=%s)", model)
        return ChatGroq(**kwargs)

    elif provider == "ollama":
        from langchain_ollama import ChatOllama

        logger.info("Building ChatOllama (model=%s, base_url=%s)", model, ollama_base_url)
        return ChatOllama(
            model=model,
            temperature=temperature,
            base_url=ollama_base_url,
        )

    else:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            "Must be 'openai', 'groq', or 'ollama'."
        )


def build_llm_from_settings(settings: Settings, **overrides: Any) -> BaseChatModel:
    """Build the chat model selected by *settings*."""
    kwargs: Dict[str, Any] = {
        "provider": settings.llm_provider,
        "model": settings.active_llm_model,
        "temperature": settings.llm_temperature,
        "ollama_base_url": settings.ollama_base_url,
        "openai_api_key": settings.openai_api_key,
        "groq_api_key": settings.groq_api_key,
    }
    kwargs.update(overrides)
    return build_llm(**kwargs)
