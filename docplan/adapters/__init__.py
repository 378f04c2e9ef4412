from __future__ import annotations

from docplan.adapters.base import ContentGenerator, DocumentAccessor, Planner
from docplan.adapters.memory_adapter import InMemoryDocument

__all__ = ["ContentGenerator", "DocumentAccessor", "Planner", "InMemoryDocument"]
