from __future__ import annotations
from typing import Any, List, Protocol, Sequence, runtime_checkable

from docplan.ir import ParagraphRecord


@runtime_checkable
class DocumentAccessor(Protocol):
    """Paragraph-level capability a host editor integration provides."""

    def list_paragraphs(self) -> Sequence[ParagraphRecord]: ...

    def replace_content(self, stable_id: str, text: str) -> None: ...

    def insert_after(self, stable_id: str, text: str) -> str: ...

    def remove_paragraph(self, stable_id: str) -> None: ...


@runtime_checkable
class ContentGenerator(Protocol):
    """Produces paragraph text from an instruction. Raises GenerationError."""

    def generate_text(self, instruction: str, context_text: str) -> str: ...


@runtime_checkable
class Planner(Protocol):
    """Produces a raw action list from the numbered document text."""

    def generate_plan(self, document_text: str) -> List[Any]: ...
