from __future__ import annotations
from typing import Any, List
import logging

from docplan.errors import GenerationError, PlanParseError
from docplan.llm.client import ClaudeClient
from docplan.llm.prompts import (
    PLANNER_SYSTEM_PROMPT,
    PLANNER_PROMPT_TEMPLATE,
    CONTENT_SYSTEM_PROMPT,
    CONTENT_PROMPT_TEMPLATE,
)
from docplan.validate import parse_plan_document

logger = logging.getLogger(__name__)


def _strip_wrapping_quotes(text: str) -> str:
    t = text.strip()
    if len(t) >= 2 and t[0] == t[-1] and t[0] in "\"'":
        return t[1:-1].strip()
    return t


class ClaudePlanner:
    """Asks Claude for an edit plan over the numbered paragraph text."""

    def __init__(self, client: ClaudeClient, max_suggestions: int = 5):
        self.client = client
        self.max_suggestions = max_suggestions

    def generate_plan(self, document_text: str) -> List[Any]:
        """
        Raises:
            PlanParseError: the reply is not a JSON action list, or the call failed
        """
        prompt = PLANNER_PROMPT_TEMPLATE.format(
            document_text=document_text,
            max_suggestions=self.max_suggestions,
        )
        try:
            reply = self.client.complete(PLANNER_SYSTEM_PROMPT, prompt, label="plan")
        except GenerationError as e:
            raise PlanParseError(f"Planner call failed: {e}") from e
        actions = parse_plan_document(reply)
        logger.info(f"Planner proposed {len(actions)} actions")
        return actions


class ClaudeContentGenerator:
    """Writes paragraph text for Modify/Insert actions that carry only an instruction."""

    def __init__(self, client: ClaudeClient, context_chars: int = 1500):
        self.client = client
        self.context_chars = context_chars

    def generate_text(self, instruction: str, context_text: str) -> str:
        prompt = CONTENT_PROMPT_TEMPLATE.format(
            instruction=instruction,
            context=(context_text or "(start of document)")[: self.context_chars],
        )
        text = _strip_wrapping_quotes(self.client.complete(CONTENT_SYSTEM_PROMPT, prompt, label="content"))
        if not text:
            raise GenerationError("Generator returned empty text")
        return text
