"""
Run the Finance Agent CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    ask       One-shot question on a thread
    chat      Interactive chat session on a thread
    history   Show a thread's conversation and accumulated records
    threads   List known threads
    forget    Delete a thread's checkpoint
    init      Create the database schema

Examples:
    python run_cli.py ask "I spent $100 on food" --thread alice
    python run_cli.py chat --thread alice

Environment variables (all optional):
    LLM_PROVIDER         "openai", "groq", or "ollama" (default: openai)
    LLM_MODEL_OPENAI     Model name when LLM_PROVIDER=openai (default: gpt-4o)
    LLM_MODEL_GROQ       Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA     Model name when LLM_PROVIDER=ollama (default: llama3.2)
    LLM_TEMPERATURE      Sampling temperature (default: 1.0)
    OPENAI_API_KEY       Required when LLM_PROVIDER=openai
    GROQ_API_KEY         Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL      Ollama server URL (default: http://localhost:11434/)
    AGENT_MAX_STEPS      Maximum model calls per question (default: 15)
    MODEL_MAX_RETRIES    Retries for failed model calls (default: 2)
    SURFACE_TOOL_ERRORS  Report bad tool calls back to the model (default: true)
    DB_PATH              SQLite database file path (default: finance.db)
    LOG_LEVEL            Logging level (default: INFO)
"""

from finance_agent.adapters.cli.main import app

if __name__ == "__main__":
    app()
