from __future__ import annotations
from typing import Optional


class DocplanError(Exception):
    """Base class for every error raised by the edit engine."""


class DocumentAccessError(DocplanError):
    """The live document could not be read. Fatal for the cycle."""


class DocumentSizeError(DocumentAccessError):
    """The document is empty or too large to analyse in one cycle."""


class PlanParseError(DocplanError):
    """The serialized plan is not a JSON list of action objects."""


class ValidationError(DocplanError):
    """A single plan action is malformed or out of bounds."""

    def __init__(self, message: str, *, category: str = "structural", plan_index: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.plan_index = plan_index


class UnsafePlanError(DocplanError):
    """The plan as a whole breaks an aggregate safety limit."""


class GenerationMismatchError(UnsafePlanError):
    """Plan and mapping were taken from different snapshots."""


class StaleReferenceError(DocplanError):
    """A stable id no longer resolves to a paragraph in the live document."""

    def __init__(self, stable_id: str, message: Optional[str] = None):
        super().__init__(message or f"Paragraph {stable_id!r} no longer exists in the document")
        self.stable_id = stable_id


class GenerationError(DocplanError):
    """The content generator could not produce text for one action."""
