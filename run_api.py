"""
Run the Finance Agent REST API.

Usage:
    python run_api.py

Environment variables: see run_cli.py.
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "finance_agent.adapters.rest.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
