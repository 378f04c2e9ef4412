"""
Mutation Executor

Applies a scheduled plan to a live document. Every sequential number is
resolved through the mapping captured at snapshot time, never through live
positions, and mutations run strictly one at a time:

1. Generate missing content for Modify/Insert actions (concurrently)
2. Modify phase
3. Insert phase
4. Destructive phase (Delete/Move, highest source number first)

A failing action is recorded and skipped over; only a document that cannot
be read at all aborts the run.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import re
import time

from docplan.editops import (
    EditAction,
    ExecutionReport,
    Modify,
    Insert,
    Delete,
    Move,
    describe,
)
from docplan.adapters.base import ContentGenerator, DocumentAccessor
from docplan.errors import (
    DocumentAccessError,
    GenerationError,
    GenerationMismatchError,
    StaleReferenceError,
)
from docplan.ir import START, SequentialMapping
from docplan.rules.load_rules import EngineConfig
from docplan.schedule import ScheduledPlan

logger = logging.getLogger(__name__)


@dataclass
class GeneratedContent:
    """Outcome of one content-generation request."""
    plan_index: int
    text: Optional[str]
    success: bool
    error: Optional[str] = None


def _normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces and tabs; a paragraph never carries edge whitespace."""
    text = re.sub(r'[^\S\n]+', ' ', text)
    return text.strip()


def _read_live(document) -> Dict[str, str]:
    try:
        return {r.stable_id: r.text for r in document.list_paragraphs()}
    except DocumentAccessError:
        raise
    except Exception as e:
        raise DocumentAccessError("Unable to access document paragraphs.") from e


def _generation_context(action: EditAction, mapping: SequentialMapping, live: Dict[str, str]) -> str:
    if isinstance(action, Modify):
        sid = mapping.resolve(action.target_sequential_number)
    else:
        n = action.after_sequential_number
        sid = mapping.resolve(n if n else 1)
    return live.get(sid, "") if sid else ""


def generate_content(
    actions: List[EditAction],
    mapping: SequentialMapping,
    live: Dict[str, str],
    generator,
    max_concurrent: int = 4,
) -> Dict[int, GeneratedContent]:
    """
    Produce text for every Modify/Insert that arrived without new_content.

    Runs before any mutation, so requests can go out in parallel; results
    are keyed by plan index.
    """
    pending = [a for a in actions if isinstance(a, (Modify, Insert)) and a.new_content is None]
    if not pending or generator is None:
        return {}

    def _one(action) -> GeneratedContent:
        context = _generation_context(action, mapping, live)
        try:
            text = generator.generate_text(action.instruction, context)
        except GenerationError as e:
            return GeneratedContent(action.plan_index, None, False, str(e))
        except Exception as e:
            return GeneratedContent(action.plan_index, None, False, f"{type(e).__name__}: {e}")
        if not isinstance(text, str) or not text.strip():
            return GeneratedContent(action.plan_index, None, False, "Generator returned empty text")
        return GeneratedContent(action.plan_index, text, True)

    logger.info(f"Generating content for {len(pending)} actions with {max_concurrent} workers")
    start_time = time.time()
    results: Dict[int, GeneratedContent] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_concurrent)) as executor:
        futures = {executor.submit(_one, a): a for a in pending}
        for future in as_completed(futures):
            result = future.result()
            results[result.plan_index] = result
    ok = sum(1 for r in results.values() if r.success)
    logger.info(f"Generated {ok}/{len(pending)} texts in {time.time() - start_time:.1f}s")
    return results


class _Executor:
    def __init__(self, mapping: SequentialMapping, document, config: EngineConfig,
                 generated: Dict[int, GeneratedContent], live: Dict[str, str]):
        self.mapping = mapping
        self.document = document
        self.config = config
        self.generated = generated
        self.live = live
        # stable id of a moved paragraph -> id of the copy that replaced it
        self.relocated: Dict[str, str] = {}

    def _resolve(self, number: int) -> str:
        sid = self.mapping.resolve(number)
        if sid is None:
            raise StaleReferenceError(f"#{number}", f"Sequential number {number} is not in snapshot {self.mapping.generation}")
        return sid

    def _follow(self, sid: str) -> str:
        seen = set()
        while sid in self.relocated and sid not in seen:
            seen.add(sid)
            sid = self.relocated[sid]
        return sid

    def _content_for(self, action) -> Optional[str]:
        if action.new_content is not None:
            return _normalize_whitespace(action.new_content)
        gen = self.generated.get(action.plan_index)
        if gen is None:
            return None
        if not gen.success:
            raise GenerationError(gen.error or "content generation failed")
        return _normalize_whitespace(gen.text or "")

    def modify(self, action: Modify, report: ExecutionReport) -> None:
        sid = self._resolve(action.target_sequential_number)
        text = self._content_for(action)
        if text is None:
            report.record(action, "skipped", "no_content")
            return
        if self.live.get(sid) == text:
            report.record(action, "skipped", "unchanged")
            return
        self.document.replace_content(sid, text)
        report.record(action, "applied")

    def insert(self, action: Insert, report: ExecutionReport) -> None:
        anchor = START if action.after_sequential_number == 0 else self._resolve(action.after_sequential_number)
        text = self._content_for(action)
        if text is None:
            report.record(action, "skipped", "no_content")
            return
        new_id = self.document.insert_after(anchor, text)
        report.record(action, "applied", new_stable_id=new_id)

    def _remove(self, sid: str) -> int:
        """Remove one paragraph and any residual it leaves; returns residuals removed."""
        before = list(self.document.list_paragraphs())
        position = next((i for i, r in enumerate(before) if r.stable_id == sid), None)
        if position is None:
            raise StaleReferenceError(sid)
        self.document.remove_paragraph(sid)
        return self._clean_residual(sid, position, len(before))

    def _clean_residual(self, sid: str, position: int, count_before: int) -> int:
        removed = 0
        records = list(self.document.list_paragraphs())
        if len(records) >= count_before:
            leftover = next((r for r in records if r.stable_id == sid), None)
            if leftover is None or leftover.text.strip():
                raise RuntimeError(f"Removing paragraph {sid} had no effect")
            # host blanked the paragraph instead of dropping it
            self.document.remove_paragraph(sid)
            removed += 1
            records = list(self.document.list_paragraphs())

        if not self.config.collapse_residual_empties or len(records) <= 1:
            return removed

        def empty(i: int) -> bool:
            return not records[i].text.strip()

        # the seam sits between records[position - 1] and records[position]
        for i in (position, position - 1):
            if not 0 <= i < len(records) or not empty(i):
                continue
            at_edge = i == 0 or i == len(records) - 1
            beside_empty = (i > 0 and empty(i - 1)) or (i + 1 < len(records) and empty(i + 1))
            if at_edge or beside_empty:
                logger.debug(f"Removing residual empty paragraph {records[i].stable_id} at position {i}")
                self.document.remove_paragraph(records[i].stable_id)
                removed += 1
                break
        return removed

    def delete(self, action: Delete, report: ExecutionReport) -> None:
        sid = self._resolve(action.target_sequential_number)
        residual = self._remove(sid)
        report.record(action, "applied", f"removed {residual} residual empty paragraph(s)" if residual else "")

    def move(self, action: Move, report: ExecutionReport) -> None:
        src = self._resolve(action.from_sequential_number)
        dest = self._follow(self._resolve(action.to_after_sequential_number))
        current = {r.stable_id: r.text for r in self.document.list_paragraphs()}
        if src not in current:
            raise StaleReferenceError(src)
        if dest not in current:
            raise StaleReferenceError(dest)

        # copy first: a failed insertion must never lose the source paragraph
        new_id = self.document.insert_after(dest, current[src])
        try:
            self._remove(src)
        except Exception:
            try:
                self.document.remove_paragraph(new_id)
            except Exception as rollback_error:
                logger.error(f"Could not roll back moved copy {new_id}: {rollback_error}")
            raise
        self.relocated[src] = new_id
        report.record(action, "applied", new_stable_id=new_id)


def execute(
    scheduled: ScheduledPlan,
    mapping: SequentialMapping,
    document: DocumentAccessor,
    generator: Optional[ContentGenerator] = None,
    config: Optional[EngineConfig] = None,
    should_continue: Optional[Callable[[], bool]] = None,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
) -> ExecutionReport:
    """
    Apply a scheduled plan to the live document.

    Args:
        scheduled: output of schedule()
        mapping: the mapping the plan was validated against
        document: DocumentAccessor for the live document
        generator: optional ContentGenerator for actions without new_content
        config: engine limits and cleanup behaviour
        should_continue: consulted before each phase; False cancels the rest
        progress_callback: optional callback(phase, completed, total)

    Returns:
        ExecutionReport with one entry per action

    Raises:
        GenerationMismatchError: plan and mapping come from different snapshots
        DocumentAccessError: the document cannot be read before mutation starts
    """
    config = config or EngineConfig()
    if scheduled.generation != mapping.generation:
        raise GenerationMismatchError(
            f"Plan from snapshot {scheduled.generation} cannot be applied to snapshot {mapping.generation}"
        )

    report = ExecutionReport()
    actions = scheduled.ordered_actions()
    if not actions:
        return report

    live = _read_live(document)
    generated = generate_content(actions, mapping, live, generator, config.max_concurrent)
    runner = _Executor(mapping, document, config, generated, live)
    handlers = {Modify: runner.modify, Insert: runner.insert, Delete: runner.delete, Move: runner.move}

    total = len(actions)
    completed = 0
    cancelled = False
    for phase in scheduled:
        if not phase.actions:
            continue
        if not cancelled and should_continue is not None and not should_continue():
            logger.warning(f"Execution cancelled before {phase.name} phase")
            cancelled = True
        if cancelled:
            for action in phase.actions:
                report.record(action, "skipped", "cancelled")
            continue

        logger.info(f"Applying {len(phase.actions)} {phase.name} action(s)")
        for action in phase.actions:
            try:
                handlers[type(action)](action, report)
            except StaleReferenceError as e:
                logger.warning(f"Stale reference for {describe(action)}: {e}")
                report.record(action, "failed", f"stale_reference: {e}")
            except GenerationError as e:
                logger.warning(f"Content generation failed for {describe(action)}: {e}")
                report.record(action, "failed", f"generation_error: {e}")
            except Exception as e:
                logger.warning(f"Failed to apply {describe(action)}: {type(e).__name__}: {e}")
                report.record(action, "failed", f"{type(e).__name__}: {e}")
            completed += 1
            if progress_callback:
                progress_callback(phase.name, completed, total)

    logger.info(
        f"Execution complete: {len(report.applied)} applied, {len(report.failed)} failed, "
        f"{len(report.skipped)} skipped"
    )
    return report
