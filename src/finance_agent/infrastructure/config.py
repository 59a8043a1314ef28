"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment (and an
optional .env file) or passed explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the finance agent."""
    project_root: Path

    # ── Centralized LLM Provider ────────────────────────────────
    # One setting controls every model call (agent and tool helpers).
    # Allowed: "openai", "groq", "ollama"
    llm_provider: str = "openai"

    # Model names: only the one matching llm_provider is used.
    llm_model_openai: str = "gpt-4o"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_model_ollama: str = "llama3.2"
    llm_temperature: float = 1.0

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    openai_api_key: str = ""
    groq_api_key: str = ""

    # Agent
    agent_max_steps: int = 15
    model_max_retries: int = 2
    surface_tool_errors: bool = True

    # Database
    db_path: str = "finance.db"

    log_level: str = "INFO"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "groq":
            return self.llm_model_groq
        elif self.llm_provider == "ollama":
            return self.llm_model_ollama
        return self.llm_model_openai

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables (and .env, if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path.cwd()

        return cls(
            project_root=root,
            llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4o"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "1.0")),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            agent_max_steps=int(os.getenv("AGENT_MAX_STEPS", "15")),
            model_max_retries=int(os.getenv("MODEL_MAX_RETRIES", "2")),
            surface_tool_errors=_env_bool("SURFACE_TOOL_ERRORS", True),
            db_path=os.getenv("DB_PATH", "finance.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
