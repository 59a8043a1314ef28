"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Records written by the finance tools. No SQL concerns here; timestamps
are set by the repository implementations when left empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Spending:
    """A raw spending amount recorded without a category."""
    id: Optional[int] = None
    amount: float = 0.0
    date: str = ""


@dataclass
class Expense:
    """A categorized expense."""
    id: Optional[int] = None
    amount: float = 0.0
    category: str = ""
    description: str = ""
    date: str = ""


@dataclass
class SpendingLimit:
    """A spending limit set by the user. Newer rows supersede older ones."""
    id: Optional[int] = None
    limit: float = 0.0
    date: str = ""


@dataclass
class Checkpoint:
    """Serialized agent state for one thread."""
    thread_id: str
    state: dict
    step: int = 0
    updated_at: str = ""
