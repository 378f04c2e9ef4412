from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple
import uuid

# Sentinel anchor for "insert before the first paragraph"
START = "__start__"

@dataclass(frozen=True)
class ParagraphRecord:
    """One paragraph as reported by a document accessor."""
    stable_id: str
    text: str

@dataclass(frozen=True)
class ParagraphReference:
    stable_id: str                      # identity of the underlying paragraph object
    doc_index: int                      # raw position at snapshot time
    is_empty: bool
    text_preview: str                   # diagnostics only
    text: str = ""
    sequential_number: Optional[int] = None  # only for non-empty paragraphs

@dataclass(frozen=True)
class SnapshotResult:
    paragraphs: Tuple[ParagraphReference, ...]
    generation: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def __len__(self) -> int:
        return len(self.paragraphs)

    def __iter__(self) -> Iterator[ParagraphReference]:
        return iter(self.paragraphs)

    @property
    def non_empty(self) -> List[ParagraphReference]:
        return [p for p in self.paragraphs if not p.is_empty]

@dataclass(frozen=True)
class SequentialMapping:
    """Sequential number -> stable id for one snapshot generation."""
    generation: str
    numbers: Dict[int, str]
    doc_indices: Dict[int, int] = field(default_factory=dict)

    def __contains__(self, number: object) -> bool:
        return number in self.numbers

    def __len__(self) -> int:
        return len(self.numbers)

    def resolve(self, number: int) -> Optional[str]:
        return self.numbers.get(number)

    def doc_index(self, number: int) -> Optional[int]:
        return self.doc_indices.get(number)

    @property
    def max_number(self) -> int:
        return max(self.numbers) if self.numbers else 0
