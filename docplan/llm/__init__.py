from __future__ import annotations

from docplan.llm.client import ClaudeClient, LLMConfig
from docplan.llm.planner import ClaudePlanner, ClaudeContentGenerator

__all__ = ["ClaudeClient", "LLMConfig", "ClaudePlanner", "ClaudeContentGenerator"]
