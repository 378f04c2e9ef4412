"""
Paragraph snapshot and sequential numbering.

The planner only ever sees non-empty paragraphs, numbered 1..N. The
executor later resolves those numbers back to the stable ids captured here,
so the numbering must be derived from exactly the same snapshot that
produced the planner's input text.
"""
from __future__ import annotations
from typing import Dict, List
import logging

from docplan.errors import DocumentAccessError
from docplan.ir import ParagraphReference, SnapshotResult, SequentialMapping

logger = logging.getLogger(__name__)


def _norm(s: str) -> str:
    return " ".join(s.split()).strip()


def _preview(text: str, limit: int) -> str:
    t = _norm(text)
    return t if len(t) <= limit else t[:limit] + "..."


def snapshot(document, preview_chars: int = 60) -> SnapshotResult:
    """
    Read the live paragraph collection once and freeze it.

    Empty paragraphs are kept: they still occupy a slot in the document and
    destructive actions must never land on them.

    Raises:
        DocumentAccessError: if the accessor cannot list its paragraphs
    """
    try:
        records = list(document.list_paragraphs())
    except DocumentAccessError:
        raise
    except Exception as e:
        raise DocumentAccessError(
            "Unable to access document paragraphs. Please ensure the document is not locked or corrupted."
        ) from e

    refs: List[ParagraphReference] = []
    seen = set()
    seq = 0
    for idx, rec in enumerate(records):
        if rec.stable_id in seen:
            raise DocumentAccessError(f"Document reported duplicate paragraph id {rec.stable_id!r}")
        seen.add(rec.stable_id)
        text = rec.text or ""
        empty = not text.strip()
        if not empty:
            seq += 1
        refs.append(ParagraphReference(
            stable_id=rec.stable_id,
            doc_index=idx,
            is_empty=empty,
            text_preview=_preview(text, preview_chars),
            text=text,
            sequential_number=None if empty else seq,
        ))

    snap = SnapshotResult(paragraphs=tuple(refs))
    logger.info(f"Snapshot {snap.generation}: {len(refs)} paragraphs, {seq} non-empty")
    return snap


def map_sequential(snap: SnapshotResult) -> SequentialMapping:
    """Dense 1..N numbering over the non-empty paragraphs, in document order."""
    numbers: Dict[int, str] = {}
    doc_indices: Dict[int, int] = {}
    for n, ref in enumerate(snap.non_empty, start=1):
        numbers[n] = ref.stable_id
        doc_indices[n] = ref.doc_index
    return SequentialMapping(generation=snap.generation, numbers=numbers, doc_indices=doc_indices)


def build_planner_text(snap: SnapshotResult) -> str:
    """Render the numbered paragraphs exactly as the planner will see them."""
    lines = []
    for n, ref in enumerate(snap.non_empty, start=1):
        lines.append(f'Paragraph {n}: "{ref.text}"')
    return "\n".join(lines)


def word_count(snap: SnapshotResult) -> int:
    return sum(len(p.text.split()) for p in snap.non_empty)
