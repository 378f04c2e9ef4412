from __future__ import annotations
from collections import Counter
from typing import Iterable, List, Optional

from docplan.errors import DocumentAccessError, StaleReferenceError
from docplan.ir import START, ParagraphRecord


class InMemoryDocument:
    """
    List-backed document accessor.

    Paragraph ids are ``p1``, ``p2``, ... in creation order and never reused,
    so they stay valid across insertions and removals elsewhere. Every
    accessor call is counted in ``calls``.

    ``leave_residual_on_remove`` mimics hosts that blank a removed paragraph
    instead of dropping it: the first removal of a non-empty paragraph leaves
    a zero-length paragraph behind under the same id.
    """

    def __init__(self, paragraphs: Iterable[str] = (), *, leave_residual_on_remove: bool = False,
                 readable: bool = True):
        self._ids: List[str] = []
        self._texts: List[str] = []
        self._counter = 0
        self.leave_residual_on_remove = leave_residual_on_remove
        self.readable = readable
        self.calls: Counter = Counter()
        self._blanked = set()
        for text in paragraphs:
            self._ids.append(self._next_id())
            self._texts.append(text)

    def _next_id(self) -> str:
        self._counter += 1
        return f"p{self._counter}"

    def _index(self, stable_id: str) -> int:
        try:
            return self._ids.index(stable_id)
        except ValueError:
            raise StaleReferenceError(stable_id)

    @property
    def texts(self) -> List[str]:
        return list(self._texts)

    @property
    def mutation_calls(self) -> int:
        return self.calls["replace_content"] + self.calls["insert_after"] + self.calls["remove_paragraph"]

    def list_paragraphs(self) -> List[ParagraphRecord]:
        self.calls["list_paragraphs"] += 1
        if not self.readable:
            raise DocumentAccessError("Document is locked")
        return [ParagraphRecord(stable_id=i, text=t) for i, t in zip(self._ids, self._texts)]

    def replace_content(self, stable_id: str, text: str) -> None:
        self.calls["replace_content"] += 1
        self._texts[self._index(stable_id)] = text

    def insert_after(self, stable_id: Optional[str], text: str) -> str:
        self.calls["insert_after"] += 1
        pos = 0 if stable_id in (None, START) else self._index(stable_id) + 1
        new_id = self._next_id()
        self._ids.insert(pos, new_id)
        self._texts.insert(pos, text)
        return new_id

    def remove_paragraph(self, stable_id: str) -> None:
        self.calls["remove_paragraph"] += 1
        idx = self._index(stable_id)
        if self.leave_residual_on_remove and self._texts[idx] and stable_id not in self._blanked:
            self._blanked.add(stable_id)
            self._texts[idx] = ""
            return
        del self._ids[idx]
        del self._texts[idx]
